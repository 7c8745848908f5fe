"""Page readers for the document formats packforge accepts."""

from .base import DocumentAdapter
from .pdf_adapter import PDFAdapter
from .txt_adapter import TXTAdapter


def build_default_adapters() -> dict[str, DocumentAdapter]:
    """PDF and plain-text readers keyed by adapter name."""
    return {"pdf": PDFAdapter(), "txt": TXTAdapter()}


__all__ = [
    "DocumentAdapter",
    "PDFAdapter",
    "TXTAdapter",
    "build_default_adapters",
]
