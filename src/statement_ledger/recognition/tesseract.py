"""Text recognizer backed by the Tesseract OCR engine."""

from pathlib import Path
from typing import Optional

import pytesseract
from PIL import Image, UnidentifiedImageError

from statement_ledger.errors import UpstreamInputError
from statement_ledger.recognition.base import ProgressCallback, TextRecognizer
from statement_ledger.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_LANGUAGE = "eng"


class TesseractRecognizer(TextRecognizer):
    """Recognizes text with pytesseract.

    Tesseract reports no intermediate progress, so the callback only sees
    the start (0.0) and the end (1.0) of each image.
    """

    def __init__(self, language: str = DEFAULT_LANGUAGE, tesseract_config: str = ""):
        """Initialize recognizer.

        Args:
            language: Tesseract language code(s), e.g. "eng" or "eng+hin".
            tesseract_config: Extra command-line options for tesseract.
        """
        self.language = language
        self.tesseract_config = tesseract_config

    def recognize(self, image: Image.Image, on_progress: Optional[ProgressCallback] = None) -> str:
        if on_progress:
            on_progress(0.0)

        try:
            text = pytesseract.image_to_string(
                image, lang=self.language, config=self.tesseract_config
            )
        except pytesseract.TesseractNotFoundError as e:
            raise UpstreamInputError(
                f"Tesseract is not installed or not on PATH: {e}",
                "Text recognition is unavailable. Please install Tesseract OCR.",
            ) from e
        except (pytesseract.TesseractError, RuntimeError) as e:
            raise UpstreamInputError(f"Text recognition failed: {e}") from e

        if on_progress:
            on_progress(1.0)

        logger.debug(f"Recognized {len(text)} characters ({self.language})")
        return text


def load_image(path: Path) -> Image.Image:
    """Open an image file fully into memory.

    Args:
        path: Image file.

    Returns:
        Loaded image.

    Raises:
        UpstreamInputError: If the file is not a readable image or exceeds
            Pillow's pixel limit.
    """
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise UpstreamInputError(f"Cannot open image {path.name}: {e}", file_path=path) from e
