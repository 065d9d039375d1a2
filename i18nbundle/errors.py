"""
Exception types raised by the bundle core.

Anything that would silently drop translator-visible content is raised.
Recoverable anomalies found while reading a file are collected as warnings
on the document instead (see TranslationDocument.warnings()).
"""
from typing import List, Sequence


class BundleError(Exception):
    """Base class for all errors raised by i18nbundle."""


class FormatError(BundleError):
    """The text is not a document of the expected dialect."""


class InvalidMasterError(BundleError):
    """The attached master could not be read as the companion dialect."""


class DuplicateIdError(BundleError):
    """A trans-unit with the same id already exists in the document."""

    def __init__(self, unit_id: str):
        super().__init__(f"tu with id {unit_id} already exists in file, cannot import it")
        self.unit_id = unit_id


class MalformedMessageError(BundleError):
    """A message fragment or display string could not be parsed."""


class PlaceholderMismatchError(BundleError):
    """A translation drops placeholders of its source or adds unknown ones."""

    def __init__(self, missing: Sequence[str], unknown: Sequence[str]):
        self.missing: List[str] = list(missing)
        self.unknown: List[str] = list(unknown)
        parts = []
        if self.missing:
            parts.append(f"Missing: {', '.join(self.missing)}")
        if self.unknown:
            parts.append(f"Unknown: {', '.join(self.unknown)}")
        super().__init__("Placeholder mismatch: " + " | ".join(parts))


class UnsupportedOperationError(BundleError):
    """The operation has no meaning for the dialect of the document."""
