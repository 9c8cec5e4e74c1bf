from .pdf_extractor import PdfTextExtractor, is_pdf

__all__ = ["PdfTextExtractor", "is_pdf"]
