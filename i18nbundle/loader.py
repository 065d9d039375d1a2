"""File based entry points, for tools that do not read the files themselves."""
import os
from typing import Optional

from .document import TranslationDocument
from .logger import get_logger

logger = get_logger(__name__)


def _read(path: str, encoding: str) -> str:
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "r", encoding=encoding) as f:
        return f.read()


def load_document(path: str, master_path: Optional[str] = None, format_tag: Optional[str] = None,
                  encoding: str = "utf-8") -> TranslationDocument:
    """
    Reads a translation file, optionally together with its master.
    Without format_tag the format is detected from the content.
    """
    content = _read(path, encoding)
    master = _read(master_path, encoding) if master_path else None
    if format_tag:
        document = TranslationDocument.from_content(format_tag, content, path, master, master_path)
    else:
        document = TranslationDocument.from_unknown_format_content(content, path, master, master_path)
    logger.info(f"Loaded {document.file_type()} file {path} with {document.number_of_trans_units()} units")
    return document


def save_document(document: TranslationDocument, path: Optional[str] = None, encoding: str = "utf-8"):
    """Writes the edited content, by default back to the file it was read from."""
    save_path = path or document.path
    if not save_path:
        raise ValueError("No path to save the document to")
    with open(save_path, "w", encoding=encoding) as f:
        f.write(document.edited_content())
    logger.info(f"Saved {document.file_type()} file {save_path}")
