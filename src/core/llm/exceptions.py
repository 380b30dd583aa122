"""
Exceptions raised by LLM providers.
"""


class ProviderError(Exception):
    """A provider call failed after exhausting its retry budget"""

    def __init__(self, provider: str, message: str, status_code: int = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class SchemaValidationError(ProviderError):
    """The provider answered, but the answer does not match the requested schema"""
