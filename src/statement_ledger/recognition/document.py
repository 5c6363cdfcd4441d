"""Document reader that turns an input file into recognized text."""

from pathlib import Path
from typing import Optional

from statement_ledger.errors import UpstreamInputError
from statement_ledger.recognition.base import PageRasterizer, ProgressCallback, TextRecognizer
from statement_ledger.recognition.pdf_rasterizer import PdfPlumberRasterizer
from statement_ledger.recognition.tesseract import TesseractRecognizer, load_image
from statement_ledger.utils.logging_config import get_logger

logger = get_logger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp")
PDF_EXTENSIONS = (".pdf",)
TEXT_EXTENSIONS = (".txt",)
SUPPORTED_EXTENSIONS = IMAGE_EXTENSIONS + PDF_EXTENSIONS + TEXT_EXTENSIONS

DEFAULT_MAX_FILE_SIZE_MB = 20
DEFAULT_MIN_TEXT_LENGTH = 50

# Share of PDF progress spent rendering pages; recognition gets the rest
PDF_RENDER_SHARE = 0.3


class DocumentReader:
    """Reads images, PDFs and plain text files into statement text.

    Images are recognized directly. PDFs are rendered page by page and each
    page is recognized; page texts are joined with blank lines. Text files
    are taken as already-recognized text.
    """

    def __init__(
        self,
        recognizer: Optional[TextRecognizer] = None,
        rasterizer: Optional[PageRasterizer] = None,
        max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB,
        min_text_length: int = DEFAULT_MIN_TEXT_LENGTH,
    ):
        """Initialize reader.

        Args:
            recognizer: Image-to-text recognizer (defaults to Tesseract).
            rasterizer: PDF page renderer (defaults to pdfplumber).
            max_file_size_mb: Largest accepted file size.
            min_text_length: Shortest recognized text considered usable.
        """
        self.recognizer = recognizer or TesseractRecognizer()
        self.rasterizer = rasterizer or PdfPlumberRasterizer()
        self.max_file_size_mb = max_file_size_mb
        self.min_text_length = min_text_length

    def validate(self, path: Path) -> None:
        """Check that a file exists, has a supported type and is not too large.

        Raises:
            UpstreamInputError: If the file cannot be accepted.
        """
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            raise UpstreamInputError(
                f"Unsupported file type: {path.name}",
                "Please upload a PNG, JPG, WEBP image or PDF file.",
                file_path=path,
            )
        if not path.is_file():
            raise UpstreamInputError(f"File not found: {path}", "File not found.", file_path=path)

        size = path.stat().st_size
        if size > self.max_file_size_mb * 1024 * 1024:
            raise UpstreamInputError(
                f"{path.name} is {size} bytes, limit is {self.max_file_size_mb} MB",
                f"File too large. Maximum size is {self.max_file_size_mb}MB.",
                file_path=path,
            )

    def read(self, path: Path, on_progress: Optional[ProgressCallback] = None) -> str:
        """Recognize the text of one file.

        Args:
            path: Input file.
            on_progress: Optional callback for fractional progress (0.0-1.0).

        Returns:
            Trimmed recognized text.

        Raises:
            UpstreamInputError: If the file is rejected, recognition fails, or
                the text is shorter than min_text_length.
        """
        path = Path(path)
        self.validate(path)
        suffix = path.suffix.lower()

        if suffix in TEXT_EXTENSIONS:
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                raise UpstreamInputError(f"Cannot read {path.name}: {e}", file_path=path) from e
            if on_progress:
                on_progress(1.0)
        elif suffix in PDF_EXTENSIONS:
            text = self._read_pdf(path, on_progress)
        else:
            text = self.recognizer.recognize(load_image(path), on_progress)

        text = text.strip()
        if len(text) < self.min_text_length:
            raise UpstreamInputError(
                f"Only {len(text)} characters recognized in {path.name} "
                f"(minimum {self.min_text_length})",
                file_path=path,
            )

        logger.info(f"Read {len(text)} characters from {path.name}")
        return text

    def _read_pdf(self, path: Path, on_progress: Optional[ProgressCallback]) -> str:
        def render_progress(fraction: float) -> None:
            if on_progress:
                on_progress(fraction * PDF_RENDER_SHARE)

        pages = self.rasterizer.pages_of(path, render_progress)
        if not pages:
            raise UpstreamInputError(
                f"No pages rendered from {path.name}",
                "Could not read PDF. The file may be corrupted.",
                file_path=path,
            )

        texts = []
        total = len(pages)
        for index, page in enumerate(pages):

            def page_progress(fraction: float, index: int = index) -> None:
                if on_progress:
                    overall = (index + fraction) / total
                    on_progress(PDF_RENDER_SHARE + overall * (1 - PDF_RENDER_SHARE))

            page_text = self.recognizer.recognize(page, page_progress)
            if page_text.strip():
                texts.append(page_text.strip())
            else:
                logger.debug(f"Page {index + 1} of {path.name} yielded no text")

        return "\n\n".join(texts)
