# modules/documents/__init__.py

from .pdf_generator import PDFGenerator

__all__ = ["PDFGenerator"]
