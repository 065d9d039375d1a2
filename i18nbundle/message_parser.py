"""
Conversion between raw XML fragments and NormalizedMessage.

Both XML fragments and display strings are first flattened into a stream
whose items are single characters or _Marker objects (one per inline
placeholder element). The dialect only decides how markers are read from
and written to elements; merging text, pairing tags, assigning indices and
parsing ICU blocks is shared.
"""
import re
from collections import defaultdict, deque
from typing import Dict, List, NamedTuple, Optional, Sequence

from lxml import etree

from . import tag_mapping
from .dom import inner_xml, local_name, parse_fragment
from .errors import MalformedMessageError
from .message import (
    MAX_ICU_DEPTH, EmptyTagPart, EndTagPart, ICUCategory, ICUMessage,
    ICUMessageRefPart, ICUPart, NormalizedMessage, PlaceholderPart,
    StartTagPart, TextPart,
)


PLACEHOLDER_NAME_REGEX = re.compile(r"^INTERPOLATION(?:_(\d+))?$")
ICU_REF_NAME_REGEX = re.compile(r"^ICU(?:_(\d+))?$")
ICU_HEAD_REGEX = re.compile(r"^\s*([\w.]+)\s*,\s*(plural|select)\s*,")

DISPLAY_TOKEN_REGEX = re.compile(
    r"\{\{(?P<placeholder>\d+)\}\}"
    r"|<ICU-Message-Ref_(?P<icu>\d+)\s*/>"
    r"|<(?P<empty>[a-zA-Z][\w.:-]*)\s*/>"
    r"|</(?P<end>[a-zA-Z][\w.:-]*)\s*>"
    r"|<(?P<start>[a-zA-Z][\w.:-]*)\s*>"
)


def looks_like_icu_message(fragment: Optional[str]) -> bool:
    """True if a raw fragment is one ICU block, checked without parsing it."""
    text = (fragment or "").strip()
    return text.startswith("{") and text.endswith("}") and ICU_HEAD_REGEX.match(text[1:]) is not None


class _Marker(NamedTuple):
    kind: str  # 'placeholder', 'icu_ref', 'start', 'end', 'empty'
    name: str  # placeholder name as written in the file
    tag: Optional[str] = None
    equiv: Optional[str] = None
    index: Optional[int] = None


def marker_for_name(name: str, equiv: Optional[str] = None) -> _Marker:
    if PLACEHOLDER_NAME_REGEX.match(name):
        return _Marker("placeholder", name, equiv=equiv)
    if ICU_REF_NAME_REGEX.match(name):
        return _Marker("icu_ref", name, equiv=equiv)
    kind, tag = tag_mapping.tag_for_placeholder_name(name)
    if kind:
        return _Marker(kind, name, tag, equiv)
    # Custom placeholder name
    return _Marker("placeholder", name, equiv=equiv)


def _index_names(names: Sequence[str], regex) -> Dict[str, int]:
    """
    Conventional names carry their index (INTERPOLATION_2 -> 2).
    Other names take the lowest free index in order of first appearance.
    """
    indices: Dict[str, int] = {}
    for name in names:
        m = regex.match(name)
        if m and name not in indices:
            indices[name] = int(m.group(1) or 0)
    taken = set(indices.values())
    next_free = 0
    for name in names:
        if name in indices:
            continue
        while next_free in taken:
            next_free += 1
        indices[name] = next_free
        taken.add(next_free)
    return indices


class _StructureParser:
    """Recursive descent over a character/marker stream, ICU depth bounded."""

    def __init__(self, stream: list):
        self.stream = stream
        self.pos = 0
        markers = [i for i in stream if isinstance(i, _Marker) and i.index is None]
        self.placeholder_indices = _index_names(
            [m.name for m in markers if m.kind == "placeholder"], PLACEHOLDER_NAME_REGEX)
        self.icu_indices = _index_names(
            [m.name for m in markers if m.kind == "icu_ref"], ICU_REF_NAME_REGEX)

    def parse(self) -> tuple:
        return tuple(self._parse_body(depth=0, in_category=False))

    def _parse_body(self, depth: int, in_category: bool) -> list:
        parts = []
        text: List[str] = []
        open_tags = []  # (tag, tag_index)
        next_tag_index = 0
        brace_depth = 0

        def flush():
            if text:
                parts.append(TextPart("".join(text)))
                text.clear()

        while self.pos < len(self.stream):
            item = self.stream[self.pos]
            if isinstance(item, _Marker):
                flush()
                if item.kind == "start":
                    parts.append(StartTagPart(next_tag_index, item.tag, item.name, item.equiv))
                    open_tags.append((item.tag, next_tag_index))
                    next_tag_index += 1
                elif item.kind == "end":
                    if not open_tags or open_tags[-1][0] != item.tag:
                        raise MalformedMessageError(f'Unexpected closing tag "</{item.tag}>"')
                    _, tag_index = open_tags.pop()
                    parts.append(EndTagPart(tag_index, item.tag, item.name, item.equiv))
                elif item.kind == "empty":
                    parts.append(EmptyTagPart(item.tag, item.name, item.equiv))
                elif item.kind == "icu_ref":
                    index = item.index if item.index is not None else self.icu_indices[item.name]
                    parts.append(ICUMessageRefPart(index, item.name, item.equiv))
                else:
                    index = item.index if item.index is not None else self.placeholder_indices[item.name]
                    parts.append(PlaceholderPart(index, item.name, item.equiv))
                self.pos += 1
                continue

            if item == "{":
                head = self._match_icu_head()
                if head is not None:
                    if depth >= MAX_ICU_DEPTH:
                        raise MalformedMessageError("ICU messages must not be nested")
                    flush()
                    parts.append(ICUPart(self._parse_icu(head, depth + 1)))
                    continue
                if in_category:
                    brace_depth += 1
            elif item == "}" and in_category:
                if brace_depth == 0:
                    break
                brace_depth -= 1
            text.append(item)
            self.pos += 1

        flush()
        if open_tags:
            raise MalformedMessageError(f'Unclosed tag "<{open_tags[-1][0]}>"')
        return parts

    def _match_icu_head(self):
        chars = []
        i = self.pos + 1
        while i < len(self.stream):
            item = self.stream[i]
            if not isinstance(item, str) or item in "{}":
                break
            chars.append(item)
            i += 1
        m = ICU_HEAD_REGEX.match("".join(chars))
        if not m:
            return None
        return m.group(1), m.group(2), 1 + m.end()

    def _skip_whitespace(self):
        while self.pos < len(self.stream):
            item = self.stream[self.pos]
            if not isinstance(item, str) or not item.isspace():
                break
            self.pos += 1

    def _parse_icu(self, head, depth: int) -> ICUMessage:
        variable, kind, consumed = head
        self.pos += consumed
        categories = []
        while True:
            self._skip_whitespace()
            if self.pos >= len(self.stream):
                raise MalformedMessageError(f'Unterminated ICU message "{variable}"')
            if self.stream[self.pos] == "}":
                self.pos += 1
                break

            label = []
            while self.pos < len(self.stream):
                item = self.stream[self.pos]
                if not isinstance(item, str) or item.isspace() or item in "{}":
                    break
                label.append(item)
                self.pos += 1
            if not label:
                raise MalformedMessageError(f'Expected category in ICU message "{variable}"')
            label = "".join(label)

            self._skip_whitespace()
            if self.pos >= len(self.stream) or self.stream[self.pos] != "{":
                raise MalformedMessageError(f'Expected "{{" after ICU category "{label}"')
            self.pos += 1
            body = self._parse_body(depth, in_category=True)
            if self.pos >= len(self.stream) or self.stream[self.pos] != "}":
                raise MalformedMessageError(f'Unterminated ICU category "{label}"')
            self.pos += 1
            categories.append(ICUCategory(label, NormalizedMessage(tuple(body))))

        if not categories:
            raise MalformedMessageError(f'ICU message "{variable}" has no categories')
        return ICUMessage(kind, variable, tuple(categories))


def default_placeholder_name(index: int) -> str:
    return "INTERPOLATION" if index == 0 else f"INTERPOLATION_{index}"


def default_icu_ref_name(index: int) -> str:
    return "ICU" if index == 0 else f"ICU_{index}"


def marker_name(part) -> str:
    """Placeholder name of a marker part, generated when the part has none."""
    if isinstance(part, PlaceholderPart):
        return part.name or default_placeholder_name(part.index)
    if isinstance(part, ICUMessageRefPart):
        return part.name or default_icu_ref_name(part.index)
    if part.ph_name:
        return part.ph_name
    if isinstance(part, StartTagPart):
        return tag_mapping.start_tag_placeholder_name(part.name)
    if isinstance(part, EndTagPart):
        return tag_mapping.close_tag_placeholder_name(part.name)
    return tag_mapping.empty_tag_placeholder_name(part.name)


def marker_equiv(part) -> str:
    """Human readable original of a marker part (<ex> / equiv-text)."""
    if part.equiv:
        return part.equiv
    if isinstance(part, (PlaceholderPart, ICUMessageRefPart)):
        return marker_name(part)
    if isinstance(part, EndTagPart):
        return f"</{part.name}>"
    if isinstance(part, EmptyTagPart):
        return f"<{part.name}/>"
    return f"<{part.name}>"


class _ReferenceNames:
    """Borrows placeholder names from the message that is being translated."""

    def __init__(self, reference: Optional[NormalizedMessage]):
        self.placeholders: Dict[int, PlaceholderPart] = {}
        self.icu_refs: Dict[int, ICUMessageRefPart] = {}
        self.tags = defaultdict(deque)
        if reference is None:
            return
        for part in reference._walk():
            if isinstance(part, PlaceholderPart):
                self.placeholders.setdefault(part.index, part)
            elif isinstance(part, ICUMessageRefPart):
                self.icu_refs.setdefault(part.index, part)
            elif isinstance(part, StartTagPart):
                self.tags[("start", part.name)].append((part.ph_name, part.equiv))
            elif isinstance(part, EndTagPart):
                self.tags[("end", part.name)].append((part.ph_name, part.equiv))
            elif isinstance(part, EmptyTagPart):
                self.tags[("empty", part.name)].append((part.ph_name, part.equiv))

    def marker_for(self, match) -> _Marker:
        if match.group("placeholder") is not None:
            index = int(match.group("placeholder"))
            known = self.placeholders.get(index)
            if known:
                return _Marker("placeholder", marker_name(known), equiv=known.equiv, index=index)
            return _Marker("placeholder", default_placeholder_name(index), index=index)
        if match.group("icu") is not None:
            index = int(match.group("icu"))
            known = self.icu_refs.get(index)
            if known:
                return _Marker("icu_ref", marker_name(known), equiv=known.equiv, index=index)
            return _Marker("icu_ref", default_icu_ref_name(index), index=index)

        for kind in ("empty", "end", "start"):
            tag = match.group(kind)
            if tag is not None:
                break
        queue = self.tags.get((kind, tag))
        if queue:
            ph_name, equiv = queue.popleft()
            if ph_name:
                return _Marker(kind, ph_name, tag, equiv)
        if kind == "start":
            name = tag_mapping.start_tag_placeholder_name(tag)
        elif kind == "end":
            name = tag_mapping.close_tag_placeholder_name(tag)
        else:
            name = tag_mapping.empty_tag_placeholder_name(tag)
        return _Marker(kind, name, tag)


def parse_display_string(display_string: str,
                         reference: Optional[NormalizedMessage] = None) -> NormalizedMessage:
    """
    Parses a string as produced by NormalizedMessage.as_display_string().
    reference is the message being translated; it supplies placeholder names.
    """
    names = _ReferenceNames(reference)
    stream: list = []
    pos = 0
    for match in DISPLAY_TOKEN_REGEX.finditer(display_string or ""):
        stream.extend(display_string[pos:match.start()])
        stream.append(names.marker_for(match))
        pos = match.end()
    stream.extend((display_string or "")[pos:])
    return NormalizedMessage(_StructureParser(stream).parse(), source_message=reference)


class MessageParser:
    """
    Base class of the per-dialect parsers.
    Subclasses read a _Marker from an inline element and write one back.
    """
    dialect = None

    def parse(self, fragment: Optional[str],
              source_message: Optional[NormalizedMessage] = None) -> NormalizedMessage:
        """
        Parses the inner XML of a source or target element.
        Raises MalformedMessageError if the fragment cannot be normalized.
        """
        try:
            root = parse_fragment(fragment or "")
        except etree.XMLSyntaxError as e:
            raise MalformedMessageError(f"Fragment is not well formed XML: {e}") from e

        stream: list = []
        if root.text:
            stream.extend(root.text)
        for node in root:
            # Comments and processing instructions are not part of the message
            if local_name(node) is not None:
                stream.append(self.read_marker(node))
            if node.tail:
                stream.extend(node.tail)
        parts = _StructureParser(stream).parse()
        return NormalizedMessage(parts, source_message=source_message)

    def serialize(self, message: NormalizedMessage) -> str:
        root = etree.Element("dummy")
        self._append_parts(root, message.parts)
        return inner_xml(root)

    def _append_parts(self, root, parts):
        for part in parts:
            if isinstance(part, TextPart):
                self._append_text(root, part.text)
            elif isinstance(part, ICUPart):
                self._append_icu(root, part.icu)
            else:
                self.write_marker(root, part)

    @staticmethod
    def _append_text(root, text: str):
        if len(root):
            root[-1].tail = (root[-1].tail or "") + text
        else:
            root.text = (root.text or "") + text

    def _append_icu(self, root, icu: ICUMessage):
        self._append_text(root, f"{{{icu.variable}, {icu.kind},")
        for category in icu.categories:
            self._append_text(root, f" {category.label} {{")
            self._append_parts(root, category.message.parts)
            self._append_text(root, "}")
        self._append_text(root, "}")

    def read_marker(self, element) -> _Marker:
        raise NotImplementedError

    def write_marker(self, root, part):
        raise NotImplementedError

    def _unexpected(self, element):
        return MalformedMessageError(
            f'Unexpected element "{local_name(element)}" in {self.dialect} message')


class XmbMessageParser(MessageParser):
    """<ph name="INTERPOLATION"><ex>INTERPOLATION</ex></ph>"""
    dialect = "xmb"

    def read_marker(self, element) -> _Marker:
        name = element.get("name")
        if local_name(element) != "ph" or not name:
            raise self._unexpected(element)
        equiv = None
        for child in element:
            if local_name(child) == "ex":
                equiv = child.text
        return marker_for_name(name, equiv)

    def write_marker(self, root, part):
        ph = etree.SubElement(root, "ph", name=marker_name(part))
        ex = etree.SubElement(ph, "ex")
        ex.text = marker_equiv(part)


class XtbMessageParser(MessageParser):
    """<ph name="INTERPOLATION"/>"""
    dialect = "xtb"

    def read_marker(self, element) -> _Marker:
        name = element.get("name")
        if local_name(element) != "ph" or not name:
            raise self._unexpected(element)
        return marker_for_name(name)

    def write_marker(self, root, part):
        etree.SubElement(root, "ph", name=marker_name(part))


class XliffMessageParser(MessageParser):
    """<x id="INTERPOLATION" equiv-text="{{ count }}"/>"""
    dialect = "xlf"

    def read_marker(self, element) -> _Marker:
        name = element.get("id")
        if local_name(element) != "x" or not name:
            raise self._unexpected(element)
        return marker_for_name(name, element.get("equiv-text"))

    def write_marker(self, root, part):
        x = etree.SubElement(root, "x", id=marker_name(part))
        if isinstance(part, (StartTagPart, EndTagPart, EmptyTagPart)):
            x.set("ctype", tag_mapping.xliff_ctype(part.name))
        x.set("equiv-text", marker_equiv(part))
