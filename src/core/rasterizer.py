"""
Page images of a process.

Documents are rasterized upstream (PDF to image conversion is an external
tool); the pipeline reads the resulting page images from the process
directory.
"""
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union

from PIL import Image, UnidentifiedImageError

from src.config import PAGE_IMAGE_EXTENSIONS
from src.core.exceptions import RasterizerError
from src.models import Page

logger = logging.getLogger(__name__)

_FIRST_NUMBER = re.compile(r"\d+")


class PageRasterizer(ABC):
    """Source of the ordered page images of a document"""

    @abstractmethod
    def get_pages(self, process_dir: Union[str, Path]) -> List[Page]:
        """
        Raises:
            RasterizerError: If the pages cannot be produced
        """


def _page_sort_key(path: Path):
    match = _FIRST_NUMBER.search(path.name)
    return (int(match.group()) if match else 0, path.name)


class ImageDirectoryRasterizer(PageRasterizer):
    """Reads already rasterized pages (page-1.png, page-2.png, ...) from a directory"""

    def __init__(self, extensions=PAGE_IMAGE_EXTENSIONS):
        self.extensions = tuple(ext.lower() for ext in extensions)

    def get_pages(self, process_dir: Union[str, Path]) -> List[Page]:
        directory = Path(process_dir)
        if not directory.is_dir():
            raise RasterizerError(f"Could not read images from directory: {directory} does not exist")

        image_files = sorted(
            (path for path in directory.iterdir()
             if path.is_file() and path.suffix.lower() in self.extensions),
            key=_page_sort_key,
        )
        if not image_files:
            raise RasterizerError(f"Pages to translate not found in {directory}")

        pages = []
        for index, image_path in enumerate(image_files, start=1):
            try:
                with Image.open(image_path) as image:
                    width, height = image.size
            except (OSError, UnidentifiedImageError) as e:
                raise RasterizerError(f"Could not read image {image_path.name}: {e}") from e
            pages.append(Page(image_path=str(image_path), page_number=index, width=width, height=height))

        logger.info(f"Found {len(pages)} page image(s) in {directory}")
        return pages
