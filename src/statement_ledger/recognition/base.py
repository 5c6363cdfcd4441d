"""Interfaces of the text recognition collaborators."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

# Receives fractional progress, 0.0-1.0
ProgressCallback = Callable[[float], None]


class TextRecognizer(ABC):
    """Turns an image into text.

    Subclasses must implement recognize(). Failures are raised as
    UpstreamInputError.
    """

    @property
    def name(self) -> str:
        """Return recognizer name for logging."""
        return self.__class__.__name__

    @abstractmethod
    def recognize(self, image: Image.Image, on_progress: Optional[ProgressCallback] = None) -> str:
        """Recognize the text of one image.

        Args:
            image: Page or photo to read.
            on_progress: Optional callback for fractional progress.

        Returns:
            Recognized text, possibly empty.

        Raises:
            UpstreamInputError: If recognition fails.
        """
        pass


class PageRasterizer(ABC):
    """Renders the pages of a multi-page document as images."""

    @property
    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """Return list of file extensions this rasterizer handles."""
        pass

    @abstractmethod
    def pages_of(self, path: Path, on_progress: Optional[ProgressCallback] = None) -> list[Image.Image]:
        """Render every page of a document.

        Args:
            path: Document to render.
            on_progress: Optional callback for fractional progress.

        Returns:
            One image per page, in page order.

        Raises:
            UpstreamInputError: If the document cannot be rendered.
        """
        pass

    def can_rasterize(self, path: Path) -> bool:
        return path.suffix.lower() in self.supported_extensions
