"""
Dialect independent representation of a message.

A NormalizedMessage is an ordered tuple of parts. Text is kept literally,
everything the translator must not touch (interpolations, HTML tags, ICU
references) is a marker part. Markers remember the placeholder name they
were read from, so serializing a message in the same dialect reproduces
the original names.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .errors import PlaceholderMismatchError

MAX_ICU_DEPTH = 1


@dataclass(frozen=True)
class TextPart:
    text: str

    def display(self) -> str:
        return self.text


@dataclass(frozen=True)
class PlaceholderPart:
    """An interpolation, e.g. {{name}} in the template."""
    index: int
    name: Optional[str] = None
    equiv: Optional[str] = None

    def display(self) -> str:
        return "{{%d}}" % self.index


@dataclass(frozen=True)
class StartTagPart:
    tag_index: int
    name: str
    ph_name: Optional[str] = None
    equiv: Optional[str] = None

    def display(self) -> str:
        return f"<{self.name}>"


@dataclass(frozen=True)
class EndTagPart:
    tag_index: int
    name: str
    ph_name: Optional[str] = None
    equiv: Optional[str] = None

    def display(self) -> str:
        return f"</{self.name}>"


@dataclass(frozen=True)
class EmptyTagPart:
    name: str
    ph_name: Optional[str] = None
    equiv: Optional[str] = None

    def display(self) -> str:
        return f"<{self.name}/>"


@dataclass(frozen=True)
class ICUMessageRefPart:
    """Reference to an ICU message that is stored as a message of its own."""
    index: int
    name: Optional[str] = None
    equiv: Optional[str] = None

    def display(self) -> str:
        return f"<ICU-Message-Ref_{self.index}/>"


@dataclass(frozen=True)
class ICUCategory:
    label: str
    message: "NormalizedMessage"


@dataclass(frozen=True)
class ICUMessage:
    kind: str  # 'plural' or 'select'
    variable: str
    categories: Tuple[ICUCategory, ...]

    def is_plural(self) -> bool:
        return self.kind == "plural"

    def category(self, label: str) -> Optional["NormalizedMessage"]:
        for c in self.categories:
            if c.label == label:
                return c.message
        return None

    def display(self) -> str:
        cats = " ".join(f"{c.label} {{{c.message.as_display_string()}}}" for c in self.categories)
        return f"{{{self.variable}, {self.kind}, {cats}}}"


@dataclass(frozen=True)
class ICUPart:
    icu: ICUMessage

    def display(self) -> str:
        return self.icu.display()


Part = Union[TextPart, PlaceholderPart, StartTagPart, EndTagPart, EmptyTagPart,
             ICUMessageRefPart, ICUPart]


@dataclass(frozen=True)
class NormalizedMessage:
    parts: Tuple[Part, ...] = ()
    # The message this one is a translation of, if known
    source_message: Optional["NormalizedMessage"] = field(default=None, compare=False, repr=False)

    def as_display_string(self) -> str:
        return "".join(p.display() for p in self.parts)

    def __str__(self):
        return self.as_display_string()

    def _walk(self):
        for part in self.parts:
            yield part
            if isinstance(part, ICUPart):
                for category in part.icu.categories:
                    yield from category.message._walk()

    def placeholders(self) -> List[PlaceholderPart]:
        """All placeholders, ICU categories included, in document order."""
        return [p for p in self._walk() if isinstance(p, PlaceholderPart)]

    def placeholder_indices(self) -> List[int]:
        return sorted({p.index for p in self.placeholders()})

    def icu_message_ref_indices(self) -> List[int]:
        return sorted({p.index for p in self._walk() if isinstance(p, ICUMessageRefPart)})

    def tag_names(self) -> List[str]:
        """Element names of all start and empty tags, in document order."""
        return [p.name for p in self._walk() if isinstance(p, (StartTagPart, EmptyTagPart))]

    def is_icu_message(self) -> bool:
        """True if the message is a single ICU block (surrounding whitespace aside)."""
        icu_parts = [p for p in self.parts if isinstance(p, ICUPart)]
        others = [p for p in self.parts
                  if not isinstance(p, ICUPart) and not (isinstance(p, TextPart) and not p.text.strip())]
        return len(icu_parts) == 1 and not others

    def icu(self) -> Optional[ICUMessage]:
        for p in self.parts:
            if isinstance(p, ICUPart):
                return p.icu
        return None

    def translate(self, translation: Union[str, "NormalizedMessage"]) -> "NormalizedMessage":
        """
        Creates the translation of this message.

        translation is either a ready message (used as is) or a display string
        as produced by as_display_string(). Tags and placeholders of a display
        string borrow their names from this message. Raises
        PlaceholderMismatchError when the display string loses a placeholder
        of this message or uses one this message does not have.
        """
        if isinstance(translation, NormalizedMessage):
            return translation

        from .message_parser import parse_display_string
        translated = parse_display_string(translation, self)
        result = translated.check()
        if result.missing or result.unknown:
            raise PlaceholderMismatchError(result.missing, result.unknown)
        return translated

    def check(self):
        """ValidationResult of this message against its source message."""
        from .validation import MessageValidator
        return MessageValidator().check(self.source_message, self)

    def validate(self) -> Optional[Dict[str, str]]:
        """Errors (placeholders removed or added) or None."""
        result = self.check()
        errors = {i.type: i.message for i in result.issues if i.severity == "error"}
        return errors or None

    def validate_warnings(self) -> Optional[Dict[str, str]]:
        """Warnings (tags removed or added) or None."""
        result = self.check()
        warnings = {i.type: i.message for i in result.issues if i.severity == "warning"}
        return warnings or None


EMPTY_MESSAGE = NormalizedMessage(())


def text_message(text: str) -> NormalizedMessage:
    return NormalizedMessage((TextPart(text),) if text else ())
