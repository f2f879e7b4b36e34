"""
PDF text extraction using pdfplumber.

Produces the layout-preserving text the statement parser consumes: line
breaks follow vertical position and column gaps become runs of spaces.
"""
import io
import pdfplumber
from pathlib import Path
from typing import List, Union
import logging

logger = logging.getLogger(__name__)

PDFSource = Union[str, Path, bytes]

LIGATURES = {
    'ﬁ': 'fi',
    'ﬂ': 'fl',
    'ﬀ': 'ff',
    'ﬃ': 'ffi',
    'ﬄ': 'ffl',
    'ﬆ': 'st',
    'ﬅ': 'st'
}


class ExtractionError(Exception):
    """Raised when a document cannot be opened or its text cannot be read."""


class PDFTextLoader:
    """Handles PDF loading and layout text extraction."""

    def __init__(self, source: PDFSource, x_tolerance: float = 2, y_tolerance: float = 3):
        self.source = source
        self.x_tolerance = x_tolerance
        self.y_tolerance = y_tolerance
        self._pdf = None
        self._pages: List[str] = []

    def load(self) -> str:
        """Load the PDF and return the text of all pages joined by newlines."""
        if self._pages:
            return "\n".join(self._pages)

        try:
            if isinstance(self.source, bytes):
                self._pdf = pdfplumber.open(io.BytesIO(self.source))
            else:
                self._pdf = pdfplumber.open(self.source)
            logger.info(f"Loaded PDF with {len(self._pdf.pages)} pages")

            for i, page in enumerate(self._pdf.pages, 1):
                text = page.extract_text(
                    x_tolerance=self.x_tolerance,
                    y_tolerance=self.y_tolerance,
                    layout=True
                ) or ""
                self._pages.append(self._normalize_text(text))
                logger.debug(f"Page {i}: {len(text)} characters extracted")

        except Exception as e:
            logger.error(f"Error loading PDF: {e}")
            self.close()
            raise ExtractionError(f"Could not extract text from PDF: {e}") from e

        return "\n".join(self._pages)

    @staticmethod
    def _normalize_text(text: str) -> str:
        """Replace ligatures and drop trailing padding; inner spacing is kept."""
        for ligature, replacement in LIGATURES.items():
            text = text.replace(ligature, replacement)

        return "\n".join(line.rstrip() for line in text.splitlines())

    def close(self):
        """Close the PDF file."""
        if self._pdf:
            self._pdf.close()
            self._pdf = None


def extract_text(source: PDFSource) -> str:
    """
    Extract layout-preserving text from a PDF.

    Args:
        source: Path to a PDF file or its raw bytes

    Returns:
        Statement text

    Raises:
        ExtractionError: if the document is corrupt or unreadable
    """
    loader = PDFTextLoader(source)
    try:
        return loader.load()
    finally:
        loader.close()
