"""Text recognition of statement images and PDFs."""

from statement_ledger.recognition.base import PageRasterizer, ProgressCallback, TextRecognizer
from statement_ledger.recognition.document import SUPPORTED_EXTENSIONS, DocumentReader
from statement_ledger.recognition.pdf_rasterizer import PdfPlumberRasterizer
from statement_ledger.recognition.tesseract import TesseractRecognizer, load_image

__all__ = [
    "DocumentReader",
    "PageRasterizer",
    "PdfPlumberRasterizer",
    "ProgressCallback",
    "SUPPORTED_EXTENSIONS",
    "TesseractRecognizer",
    "TextRecognizer",
    "load_image",
]
