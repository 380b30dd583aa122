"""
Pipeline error taxonomy.

Every fatal error of a document run derives from PipelineError and is turned
into the process 'error' state by the top-level job handler.
"""


class PipelineError(Exception):
    """Base class for fatal errors of a document run"""


class InputError(PipelineError):
    """Malformed page list (missing image path, non-contiguous numbering, ...)"""


class RasterizerError(PipelineError):
    """The document could not be turned into page images"""


class StageError(PipelineError):
    """A worker stage could not produce a usable result for its page"""

    def __init__(self, stage_name: str, page_number: int, message: str):
        self.stage_name = stage_name
        self.page_number = page_number
        super().__init__(f"[{stage_name}] page {page_number}: {message}")


class RenderError(PipelineError):
    """The rendering service could not produce a screenshot"""


class AssemblyError(PipelineError):
    """No page produced extractable body content"""


class RunTimeoutError(PipelineError):
    """The document run exceeded its overall time bound"""
