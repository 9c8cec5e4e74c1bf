"""
Name: PDF Text Extractor

Responsibilities:
  - Check PDF magic bytes before parsing
  - Extract text from every page with pypdf
  - Tolerate broken pages (skip with a warning)
  - Report page count and document info (title, author, creator)

Collaborators:
  - pypdf.PdfReader
  - exceptions.ExtractionError

Constraints:
  - Image-only PDFs yield no text and fail with ExtractionError
"""

from __future__ import annotations

from io import BytesIO

from pypdf import PdfReader

from ...domain.entities import DocumentInfo, ExtractedDocument
from ...exceptions import ExtractionError
from ...logger import logger

PDF_MAGIC = b"%PDF-"


def is_pdf(content: bytes) -> bool:
    return content[: len(PDF_MAGIC)] == PDF_MAGIC


def _info_field(metadata, name: str) -> str | None:
    if metadata is None:
        return None
    value = getattr(metadata, name, None)
    return str(value) if value else None


class PdfTextExtractor:
    """R: TextExtractor for PDF uploads."""

    def extract(self, content: bytes) -> ExtractedDocument:
        """
        R: Extract text, page count and info.

        Raises:
            ExtractionError: Not a PDF, unreadable, or no text found
        """
        if not content or not is_pdf(content):
            raise ExtractionError("Invalid PDF file")

        try:
            reader = PdfReader(BytesIO(content), strict=False)
            pages = list(reader.pages)
        except Exception as e:
            raise ExtractionError(
                f"Could not open PDF: {e}", original_error=e
            ) from e

        parts: list[str] = []
        for i, page in enumerate(pages):
            try:
                text = page.extract_text() or ""
            except Exception as e:
                logger.warning(
                    "PDF page extraction failed",
                    extra={"page": i, "error_type": type(e).__name__},
                )
                continue
            if text.strip():
                parts.append(text)

        text = "\n".join(parts)
        if not text.strip():
            raise ExtractionError("No text could be extracted from the PDF")

        try:
            metadata = reader.metadata
        except Exception as e:
            logger.warning("PDF metadata unreadable", extra={"error": str(e)})
            metadata = None

        info = DocumentInfo(
            title=_info_field(metadata, "title"),
            author=_info_field(metadata, "author"),
            creator=_info_field(metadata, "creator"),
        )

        logger.info(
            "PDF extracted",
            extra={"page_count": len(pages), "text_chars": len(text)},
        )
        return ExtractedDocument(text=text, page_count=len(pages), info=info)
