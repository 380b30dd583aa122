"""
Batch scheduling of page chains.

Pages are split into chunks the size of the adapter's simultaneous request
ceiling. Chunks run one after the other; the pages of a chunk run concurrently.
This caps the number of in-flight model calls at the provider's rate limit.
"""
import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from src.config import AdapterConfig
from src.core.chain import WorkerChain
from src.core.exceptions import InputError
from src.models import Page, PageTranslation

logger = logging.getLogger(__name__)

ChainFactory = Callable[[Page], WorkerChain]


def chunk_pages(pages: Sequence[Page], size: int) -> List[List[Page]]:
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [list(pages[i:i + size]) for i in range(0, len(pages), size)]


def validate_pages(pages: Sequence[Page]):
    """
    Raises:
        InputError: If the list is empty, a page has no image, or numbering is
            not 1..N in order
    """
    if not pages:
        raise InputError("Pages to translate not found")
    for index, page in enumerate(pages, start=1):
        if not page.image_path:
            raise InputError(f"Page {page.page_number} has no image path")
        if page.page_number != index:
            raise InputError(f"Pages must be numbered contiguously from 1: "
                             f"expected page {index}, got {page.page_number}")


class PageScheduler:
    """
    Runs one worker chain per page, chunk by chunk.

    Args:
        adapter_config: Adapter whose simultaneous_requests sizes the chunks
        chain_factory: Builds the chain of a page
        progress_callback: Receives "Translate X/Y" after each chunk
    """

    def __init__(self, adapter_config: AdapterConfig, chain_factory: ChainFactory,
                 progress_callback: Optional[Callable[[str], None]] = None):
        self.adapter_config = adapter_config
        self.chain_factory = chain_factory
        self.progress_callback = progress_callback

    async def run(self, pages: Sequence[Page]) -> List[PageTranslation]:
        """
        Translate every page, preserving input order.

        Raises:
            InputError: Before any chain starts, if the page list is malformed
            StageError: From the first failing page; later chunks are not started
        """
        validate_pages(pages)
        chunks = chunk_pages(pages, self.adapter_config.simultaneous_requests)
        total = len(pages)
        logger.info(f"Translating {total} page(s) in {len(chunks)} chunk(s) of up to "
                    f"{self.adapter_config.simultaneous_requests} ({self.adapter_config.name})")

        results: List[PageTranslation] = []
        for chunk_index, chunk in enumerate(chunks, start=1):
            # gather keeps results in argument order, whatever the completion order
            chunk_results = await asyncio.gather(*(self.chain_factory(page).run() for page in chunk))
            results.extend(chunk_results)
            logger.debug(f"Chunk {chunk_index}/{len(chunks)} done")
            self._send_status(f"Translate {len(results)}/{total}")
        return results

    def _send_status(self, message: str):
        if self.progress_callback is None:
            return
        try:
            self.progress_callback(message)
        except Exception as e:
            logger.warning(f"Progress update failed: {e}")
