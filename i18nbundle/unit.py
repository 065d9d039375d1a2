from enum import Enum
from typing import List, Optional, Union

from .logger import get_logger
from .message import NormalizedMessage
from .source_reference import SourceReference

logger = get_logger(__name__)


class TargetState(str, Enum):
    NEW = "new"
    TRANSLATED = "translated"
    FINAL = "final"


class TranslationUnit:
    """
    One trans-unit of a document.

    The unit is a view on its element in the document tree; everything that
    depends on the format is delegated to the document's dialect.
    Units are created by the document (parse or import), not by callers.
    """

    def __init__(self, element, unit_id: Optional[str], document):
        self.element = element
        self.id = unit_id
        self._document = document
        # FINAL for units imported for the default language into a dialect without state notation
        self.import_state: Optional[TargetState] = None
        # Unit this one was imported from, used when no master knows the id
        self.imported_from: Optional["TranslationUnit"] = None

    def __repr__(self):
        return f"TranslationUnit(id={self.id!r}, format={self._document.format()!r})"

    @property
    def document(self):
        return self._document

    @property
    def _dialect(self):
        return self._document.dialect

    def source_content(self) -> Optional[str]:
        """Raw XML of the original text, None if the unit has no known source."""
        return self._dialect.read_source(self)

    def source_content_normalized(self) -> Optional[NormalizedMessage]:
        return self._dialect.read_source_normalized(self)

    def target_content(self) -> str:
        """Raw XML of the translation, "" when not yet translated."""
        return self._dialect.read_target(self) or ""

    def target_content_normalized(self) -> NormalizedMessage:
        return self._dialect.message_parser.parse(self.target_content(), self.source_content_normalized())

    def target_state(self) -> TargetState:
        return self._dialect.read_state(self)

    def supports_set_target_state(self) -> bool:
        return self._dialect.supports_target_state

    def set_target_state(self, state: Union[TargetState, str]):
        """No-op for dialects that cannot store a state."""
        self._dialect.write_state(self, TargetState(state))
        self._document.invalidate_caches()

    def meaning(self) -> Optional[str]:
        return self._dialect.read_meaning(self)

    def description(self) -> Optional[str]:
        return self._dialect.read_description(self)

    def source_references(self) -> List[SourceReference]:
        return self._dialect.read_source_references(self)

    def translate(self, translation: Union[str, NormalizedMessage]):
        """
        Sets the target content.

        A string is read as display string (see NormalizedMessage.as_display_string)
        and checked against the source message, or against the current
        translation when the unit has no source.
        Raises PlaceholderMismatchError if placeholders were lost or invented.
        """
        self._dialect.check_translatable(self)
        if isinstance(translation, NormalizedMessage):
            message = translation
        else:
            reference = self.source_content_normalized()
            if reference is None:
                reference = self.target_content_normalized()
            message = reference.translate(translation)

        self._dialect.write_target(self, self._dialect.message_parser.serialize(message))
        self._dialect.write_state(self, TargetState.TRANSLATED)
        self.import_state = None
        self._document.invalidate_caches()
        logger.debug(f"Translated unit {self.id}")
