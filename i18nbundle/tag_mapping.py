"""
Mapping between HTML element names and the placeholder names that the
Angular extractor writes for them (START_BOLD_TEXT, CLOSE_TAG_STRANGE, ...).
"""
import re
from typing import Optional, Tuple

TAG_TO_PLACEHOLDER_NAMES = {
    "a": "LINK",
    "b": "BOLD_TEXT",
    "br": "LINE_BREAK",
    "em": "EMPHASISED_TEXT",
    "h1": "HEADING_LEVEL1",
    "h2": "HEADING_LEVEL2",
    "h3": "HEADING_LEVEL3",
    "h4": "HEADING_LEVEL4",
    "h5": "HEADING_LEVEL5",
    "h6": "HEADING_LEVEL6",
    "hr": "HORIZONTAL_RULE",
    "i": "ITALIC_TEXT",
    "li": "LIST_ITEM",
    "link": "MEDIA_LINK",
    "ol": "ORDERED_LIST",
    "p": "PARAGRAPH",
    "q": "QUOTATION",
    "s": "STRIKETHROUGH_TEXT",
    "small": "SMALL_TEXT",
    "sub": "SUBSTRIPT",
    "sup": "SUPERSCRIPT",
    "tbody": "TABLE_BODY",
    "td": "TABLE_CELL",
    "tfoot": "TABLE_FOOTER",
    "th": "TABLE_HEADER_CELL",
    "tr": "TABLE_ROW",
    "tt": "MONOSPACED_TEXT",
    "u": "UNDERLINED_TEXT",
    "ul": "UNORDERED_LIST",
}

PLACEHOLDER_NAMES_TO_TAG = {v: k for k, v in TAG_TO_PLACEHOLDER_NAMES.items()}

VOID_TAGS = (
    "area", "base", "br", "col", "command", "embed", "hr", "img", "input",
    "keygen", "link", "meta", "param", "source", "track", "wbr",
)

# Repeated placeholders get a numeric suffix: START_BOLD_TEXT_1
REPEAT_SUFFIX_REGEX = re.compile(r"_\d+$")

# ctype attribute values used for inline markers in XLIFF
XLIFF_CTYPES = {"br": "lb", "img": "image"}


def _base_name(tag: str) -> str:
    return TAG_TO_PLACEHOLDER_NAMES.get(tag.lower(), "TAG_" + tag.upper())


def is_void_tag(tag: str) -> bool:
    return tag.lower() in VOID_TAGS


def start_tag_placeholder_name(tag: str) -> str:
    return "START_" + _base_name(tag)


def close_tag_placeholder_name(tag: str) -> str:
    return "CLOSE_" + _base_name(tag)


def empty_tag_placeholder_name(tag: str) -> str:
    return _base_name(tag)


def _tag_from_base_name(base: str) -> str:
    if base in PLACEHOLDER_NAMES_TO_TAG:
        return PLACEHOLDER_NAMES_TO_TAG[base]
    if base.startswith("TAG_"):
        return base[len("TAG_"):].lower()
    return base.lower()


def tag_for_placeholder_name(name: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Classifies a placeholder name.
    Returns (kind, tag) with kind one of "start", "end", "empty",
    or (None, None) when the name does not stand for an HTML element.
    """
    base = REPEAT_SUFFIX_REGEX.sub("", name)
    if base.startswith("START_"):
        return "start", _tag_from_base_name(base[len("START_"):])
    if base.startswith("CLOSE_"):
        return "end", _tag_from_base_name(base[len("CLOSE_"):])
    if base.startswith("TAG_"):
        return "empty", _tag_from_base_name(base)
    tag = PLACEHOLDER_NAMES_TO_TAG.get(base)
    if tag and is_void_tag(tag):
        return "empty", tag
    return None, None


def xliff_ctype(tag: str) -> str:
    return XLIFF_CTYPES.get(tag.lower(), "x-" + tag.lower())
