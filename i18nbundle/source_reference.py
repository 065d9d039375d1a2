import re
from dataclasses import dataclass
from typing import Optional

# "file:7" or "file:7,8" when the text spreads over more than one line
LINE_SPEC_REGEX = re.compile(r"^(\d+)(?:,\d+)*$")


@dataclass(frozen=True)
class SourceReference:
    sourcefile: str
    linenumber: int


def parse_source_reference(text: Optional[str]) -> Optional[SourceReference]:
    """
    Parses "path/to/file.ts:7,8" into SourceReference("path/to/file.ts", 7).
    Only the first line number of a range is kept.
    Returns None for text without a line number.
    """
    if not text:
        return None
    text = text.strip()
    sep = text.rfind(":")
    if sep <= 0:
        return None
    m = LINE_SPEC_REGEX.match(text[sep + 1:].strip())
    if not m:
        return None
    return SourceReference(text[:sep], int(m.group(1)))


def format_source_reference(ref: SourceReference) -> str:
    return f"{ref.sourcefile}:{ref.linenumber}"
