from .pdf_document_ingestor import PdfDocumentIngestor, parse_pdf_date

__all__ = ["PdfDocumentIngestor", "parse_pdf_date"]
