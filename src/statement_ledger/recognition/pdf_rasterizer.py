"""PDF page rasterizer using the pdfplumber library."""

from pathlib import Path
from typing import Optional

import pdfplumber
from PIL import Image

from statement_ledger.errors import UpstreamInputError
from statement_ledger.recognition.base import PageRasterizer, ProgressCallback
from statement_ledger.utils.logging_config import get_logger

logger = get_logger(__name__)

# Twice the 72 dpi PDF user space
DEFAULT_RESOLUTION = 144

# Maximum number of pages to render to prevent resource exhaustion
MAX_PDF_PAGES = 100


class PdfPlumberRasterizer(PageRasterizer):
    """Renders PDF pages to images for recognition."""

    def __init__(self, resolution: int = DEFAULT_RESOLUTION, max_pages: int = MAX_PDF_PAGES):
        """Initialize rasterizer.

        Args:
            resolution: Render resolution in dpi.
            max_pages: Largest page count accepted.
        """
        self.resolution = resolution
        self.max_pages = max_pages

    @property
    def supported_extensions(self) -> list[str]:
        return [".pdf"]

    def pages_of(self, path: Path, on_progress: Optional[ProgressCallback] = None) -> list[Image.Image]:
        if not path.exists():
            raise UpstreamInputError(f"File not found: {path}", file_path=path)

        images = []
        try:
            with pdfplumber.open(path) as pdf:
                total = len(pdf.pages)
                if total == 0:
                    raise UpstreamInputError(f"PDF has no pages: {path.name}", file_path=path)
                if total > self.max_pages:
                    raise UpstreamInputError(
                        f"PDF has too many pages ({total}). Maximum allowed is {self.max_pages}",
                        file_path=path,
                    )

                for page_num, page in enumerate(pdf.pages, start=1):
                    rendered = page.to_image(resolution=self.resolution)
                    images.append(rendered.original.convert("RGB"))
                    if on_progress:
                        on_progress(page_num / total)

        except UpstreamInputError:
            raise
        except Exception as e:
            raise UpstreamInputError(f"Failed to render PDF {path.name}: {e}", file_path=path) from e

        logger.info(f"Rendered {len(images)} page(s) from {path.name} at {self.resolution} dpi")
        return images
