"""
Translation job handlers and processing logic
"""
import asyncio
import logging
import threading
from pathlib import Path
from typing import Optional

from src.config import RUN_TIMEOUT_HOURS, TranslationConfig, language_code
from src.core.chain import WorkerChain, build_default_stages
from src.core.exceptions import RunTimeoutError
from src.core.html import HtmlAssembler
from src.core.llm import LLMProvider, create_llm_provider
from src.core.page_scheduler import PageScheduler
from src.core.rasterizer import ImageDirectoryRasterizer, PageRasterizer
from src.core.rendering import HttpPageRenderer, PageRenderer
from src.models import ProcessStatus
from src.services import ProcessNotFoundError, ProcessService

logger = logging.getLogger(__name__)

DONE_MESSAGE = "Translations done"
COMPLETED_MESSAGE = "Action completed successfully"


def run_translation_async_wrapper(process_id, config, process_dir, service, **collaborators):
    """
    Wrapper for running a document translation in its own event loop

    Args:
        process_id (int): Process record ID
        config (TranslationConfig): Translation configuration
        process_dir (str): Directory holding the page images
        service (ProcessService): Process state machine
        **collaborators: provider, renderer, rasterizer, run_timeout overrides
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        loop.run_until_complete(perform_document_translation(process_id, config, process_dir, service, **collaborators))
    except Exception as e:
        logger.error(f"Process {process_id} failed: {e}", exc_info=True)
        try:
            service.update(process_id, status=ProcessStatus.ERROR, message=str(e), error=str(e))
        except ProcessNotFoundError:
            logger.warning(f"Process {process_id} was deleted while running")
    finally:
        loop.close()


async def perform_document_translation(process_id: int, config: TranslationConfig, process_dir,
                                       service: ProcessService,
                                       provider: Optional[LLMProvider] = None,
                                       renderer: Optional[PageRenderer] = None,
                                       rasterizer: Optional[PageRasterizer] = None,
                                       run_timeout: Optional[float] = None):
    """
    Rasterize, translate every page, assemble and store the document.

    Any error propagates to the caller, which marks the process as failed.

    Raises:
        RunTimeoutError: If the pages are not all translated within run_timeout seconds
    """
    process_dir = Path(process_dir)
    adapter_config = config.adapter_config
    provider = provider or create_llm_provider(adapter_config)
    renderer = renderer or HttpPageRenderer()
    rasterizer = rasterizer or ImageDirectoryRasterizer()
    run_timeout = run_timeout if run_timeout is not None else RUN_TIMEOUT_HOURS * 60 * 60

    try:
        service.update(process_id, status=ProcessStatus.UPLOAD, message="Reading document pages", progress=10)
        pages = rasterizer.get_pages(process_dir)

        service.update(process_id, status=ProcessStatus.PROCESSING,
                       message=f"Translating {len(pages)} page(s) with {adapter_config.name}", progress=20)

        stages = build_default_stages(config, renderer, process_dir)

        def chain_factory(page):
            return WorkerChain(provider, stages, page, cycles=config.cycles)

        def progress_callback(message):
            service.update(process_id, message=message)

        scheduler = PageScheduler(adapter_config, chain_factory, progress_callback)
        try:
            translations = await asyncio.wait_for(scheduler.run(pages), timeout=run_timeout)
        except asyncio.TimeoutError:
            raise RunTimeoutError("Timeout Error when translating pages with the model")
        logger.info(f"Process {process_id}: {len(translations)} page(s) translated")

        html = HtmlAssembler(lang=language_code(config.language)).join(translations)

        previous_config = service.get(process_id).config or {}
        service.update(
            process_id,
            status=ProcessStatus.TRANSLATING,
            message=DONE_MESSAGE,
            progress=60,
            html=html,
            pages_info=[page.page_info for page in pages],
            config={**previous_config, 'translation': config.to_dict()},
        )
        service.update(process_id, status=ProcessStatus.COMPLETED, message=COMPLETED_MESSAGE, progress=100)
        logger.info(f"Process {process_id} completed")
    finally:
        await provider.close()
        if isinstance(renderer, HttpPageRenderer):
            await renderer.close()


def start_translation_job(process_id, config, process_dir, service, **collaborators):
    """
    Start a translation job in a separate thread

    Args:
        process_id (int): Process record ID
        config (TranslationConfig): Translation configuration
        process_dir (str): Directory holding the page images
        service (ProcessService): Process state machine
    """
    thread = threading.Thread(
        target=run_translation_async_wrapper,
        args=(process_id, config, process_dir, service),
        kwargs=collaborators,
        name=f"process-{process_id}",
    )
    thread.daemon = True
    thread.start()
    return thread
