from .document import TranslationDocument
from .errors import (
    BundleError, DuplicateIdError, FormatError, InvalidMasterError,
    MalformedMessageError, PlaceholderMismatchError, UnsupportedOperationError,
)
from .message import NormalizedMessage
from .unit import TargetState, TranslationUnit

__all__ = [
    "BundleError",
    "DuplicateIdError",
    "FormatError",
    "InvalidMasterError",
    "MalformedMessageError",
    "NormalizedMessage",
    "PlaceholderMismatchError",
    "TargetState",
    "TranslationDocument",
    "TranslationUnit",
    "UnsupportedOperationError",
]
