"""
One Dialect per file format.

A document picks its dialect once, from the format tag, and delegates all
format specific reads and writes of itself and its units to it.
"""
import re
from typing import List, Optional

from . import dom
from .errors import FormatError, UnsupportedOperationError
from .master import counterpart_of, derive_state
from .message import NormalizedMessage
from .message_parser import (
    MessageParser, XliffMessageParser, XmbMessageParser, XtbMessageParser,
)
from .source_reference import SourceReference, format_source_reference, parse_source_reference
from .unit import TargetState, TranslationUnit

FORMAT_XMB = "xmb"
FORMAT_XTB = "xtb"
FORMAT_XLIFF = "xlf"

XLIFF_NAMESPACE = "urn:oasis:names:tc:xliff:document:1.2"

XTB_DOCTYPE = """<!DOCTYPE translationbundle [
  <!ELEMENT translationbundle (translation)*>
  <!ATTLIST translationbundle lang CDATA #REQUIRED>
  <!ELEMENT translation (#PCDATA|ph)*>
  <!ATTLIST translation id CDATA #REQUIRED>
  <!ELEMENT ph EMPTY>
  <!ATTLIST ph name CDATA #REQUIRED>
]>"""

# messages.de.xmb -> de
XMB_LANGUAGE_FROM_PATH_REGEX = re.compile(r"\.([a-zA-Z]{2,3}(?:[-_][a-zA-Z0-9]+)*)\.xmb$")


class Dialect:
    format: str = None
    file_type: str = None
    root_tag: str = None
    unit_tag: str = None
    message_parser: MessageParser = None
    supports_target_state = False
    # Format of the master a document of this dialect can be attached to
    companion_format: Optional[str] = None
    # Format of the files created by create_translation_file_for_lang
    translation_format: Optional[str] = None

    def units_of(self, root) -> list:
        return dom.elements_by_tag(root, self.unit_tag)

    def unit_id(self, element) -> Optional[str]:
        return element.get("id")

    # --- Document level ---

    def source_language(self, document) -> Optional[str]:
        return None

    def set_source_language(self, document, language: str):
        pass

    def target_language(self, document) -> Optional[str]:
        return None

    def set_target_language(self, document, language: str):
        pass

    def skeleton(self, language: str) -> str:
        raise UnsupportedOperationError(f"Cannot create empty {self.file_type} files")

    def check_structure(self, document):
        """Raises FormatError when the document lacks elements the dialect writes into."""

    def create_unit_element(self, document, source_unit: TranslationUnit,
                            source_fragment: str, target_fragment: str,
                            state: TargetState):
        raise NotImplementedError

    # --- Unit level ---

    def read_source(self, unit) -> Optional[str]:
        raise NotImplementedError

    def read_source_normalized(self, unit) -> Optional[NormalizedMessage]:
        source = self.read_source(unit)
        if source is None:
            return None
        return self.message_parser.parse(source)

    def read_target(self, unit) -> str:
        raise NotImplementedError

    def write_target(self, unit, fragment: str):
        raise NotImplementedError

    def check_translatable(self, unit):
        pass

    def read_state(self, unit) -> TargetState:
        raise NotImplementedError

    def write_state(self, unit, state: TargetState):
        pass

    def read_meaning(self, unit) -> Optional[str]:
        return None

    def read_description(self, unit) -> Optional[str]:
        return None

    def read_source_references(self, unit) -> List[SourceReference]:
        return []


class XmbDialect(Dialect):
    """
    Master file written by the extractor. The message text is the source,
    source references are <source> children of <msg>.
    """
    format = FORMAT_XMB
    file_type = "XMB"
    root_tag = "messagebundle"
    unit_tag = "msg"
    message_parser = XmbMessageParser()
    translation_format = FORMAT_XTB

    def source_language(self, document) -> Optional[str]:
        # xmb has no notation for it, the file name may tell
        if not document.path:
            return None
        m = XMB_LANGUAGE_FROM_PATH_REGEX.search(document.path)
        return m.group(1) if m else None

    def create_unit_element(self, document, source_unit, source_fragment, target_fragment, state):
        bundle = dom.first_element_by_tag(document.root, self.root_tag)
        msg = dom.append_child(bundle, "msg", {
            "id": source_unit.id,
            "desc": source_unit.description(),
            "meaning": source_unit.meaning(),
        }, tail="\n")
        for ref in source_unit.source_references():
            dom.append_child(msg, "source", text=format_source_reference(ref))
        dom.replace_content_with_xml(msg, source_fragment, keep_tags=("source",))
        return msg

    def read_source(self, unit) -> Optional[str]:
        return dom.inner_xml(unit.element, skip_tags=("source",))

    def read_target(self, unit) -> str:
        return self.read_source(unit)

    def check_translatable(self, unit):
        raise UnsupportedOperationError(
            f"xmb files are masters and cannot be translated (unit {unit.id}), use an xtb file")

    def read_state(self, unit) -> TargetState:
        return TargetState.FINAL

    def read_meaning(self, unit) -> Optional[str]:
        return unit.element.get("meaning")

    def read_description(self, unit) -> Optional[str]:
        return unit.element.get("desc")

    def read_source_references(self, unit) -> List[SourceReference]:
        refs = []
        for source in dom.child_elements_by_tag(unit.element, "source"):
            ref = parse_source_reference(source.text)
            if ref:
                refs.append(ref)
        return refs


class XtbDialect(Dialect):
    """
    Translation file. Holds only id and translated text; source text,
    source language, meaning and references come from the xmb master.
    """
    format = FORMAT_XTB
    file_type = "XTB"
    root_tag = "translationbundle"
    unit_tag = "translation"
    message_parser = XtbMessageParser()
    companion_format = FORMAT_XMB

    def source_language(self, document) -> Optional[str]:
        if document.master_link is None:
            return None
        return document.master_link.source_language()

    def target_language(self, document) -> Optional[str]:
        bundle = dom.first_element_by_tag(document.root, self.root_tag)
        return bundle.get("lang") if bundle is not None else None

    def set_target_language(self, document, language: str):
        bundle = dom.first_element_by_tag(document.root, self.root_tag)
        if bundle is not None:
            bundle.set("lang", language)

    def skeleton(self, language: str) -> str:
        return (f'<?xml version="1.0" encoding="UTF-8"?>\n{XTB_DOCTYPE}\n'
                f'<translationbundle lang="{language}">\n</translationbundle>\n')

    def create_unit_element(self, document, source_unit, source_fragment, target_fragment, state):
        bundle = dom.first_element_by_tag(document.root, self.root_tag)
        translation = dom.append_child(bundle, "translation", {"id": source_unit.id}, tail="\n")
        dom.replace_content_with_xml(translation, target_fragment)
        return translation

    def read_source(self, unit) -> Optional[str]:
        counterpart = counterpart_of(unit)
        return counterpart.source_content() if counterpart is not None else None

    def read_source_normalized(self, unit) -> Optional[NormalizedMessage]:
        counterpart = counterpart_of(unit)
        return counterpart.source_content_normalized() if counterpart is not None else None

    def read_target(self, unit) -> str:
        return dom.inner_xml(unit.element)

    def write_target(self, unit, fragment: str):
        dom.replace_content_with_xml(unit.element, fragment)

    def read_state(self, unit) -> TargetState:
        return derive_state(unit)

    def read_meaning(self, unit) -> Optional[str]:
        counterpart = counterpart_of(unit)
        return counterpart.meaning() if counterpart is not None else None

    def read_description(self, unit) -> Optional[str]:
        counterpart = counterpart_of(unit)
        return counterpart.description() if counterpart is not None else None

    def read_source_references(self, unit) -> List[SourceReference]:
        counterpart = counterpart_of(unit)
        return counterpart.source_references() if counterpart is not None else []


# Native XLIFF 1.2 states mapped to the three state model
XLIFF_NEW_STATES = ("new", "needs-translation", "needs-adaptation", "needs-l10n")
XLIFF_FINAL_STATES = ("final", "signed-off")


class XliffDialect(Dialect):
    """XLIFF 1.2 as written by the Angular extractor."""
    format = FORMAT_XLIFF
    file_type = "XLIFF"
    root_tag = "xliff"
    unit_tag = "trans-unit"
    message_parser = XliffMessageParser()
    supports_target_state = True
    translation_format = FORMAT_XLIFF

    def _file_element(self, document):
        return dom.first_element_by_tag(document.root, "file")

    def check_structure(self, document):
        if self._file_element(document) is None:
            raise FormatError(f'File "{document.path}" is an xliff file without a <file> element')

    def source_language(self, document) -> Optional[str]:
        file_elem = self._file_element(document)
        return file_elem.get("source-language") if file_elem is not None else None

    def set_source_language(self, document, language: str):
        file_elem = self._file_element(document)
        if file_elem is not None:
            file_elem.set("source-language", language)

    def target_language(self, document) -> Optional[str]:
        file_elem = self._file_element(document)
        return file_elem.get("target-language") if file_elem is not None else None

    def set_target_language(self, document, language: str):
        file_elem = self._file_element(document)
        if file_elem is not None:
            file_elem.set("target-language", language)

    def create_unit_element(self, document, source_unit, source_fragment, target_fragment, state):
        body = dom.first_element_by_tag(self._file_element(document), "body")
        if body is None:
            body = dom.append_child(self._file_element(document), "body")
        tu = dom.append_child(body, "trans-unit", {"id": source_unit.id, "datatype": "html"}, tail="\n")
        source = dom.append_child(tu, "source")
        dom.replace_content_with_xml(source, source_fragment)
        target = dom.append_child(tu, "target", {"state": state.value})
        dom.replace_content_with_xml(target, target_fragment)
        for ref in source_unit.source_references():
            group = dom.append_child(tu, "context-group", {"purpose": "location"})
            dom.append_child(group, "context", {"context-type": "sourcefile"}, text=ref.sourcefile)
            dom.append_child(group, "context", {"context-type": "linenumber"}, text=str(ref.linenumber))
        if source_unit.description():
            dom.append_child(tu, "note", {"priority": "1", "from": "description"},
                             text=source_unit.description())
        if source_unit.meaning():
            dom.append_child(tu, "note", {"priority": "1", "from": "meaning"},
                             text=source_unit.meaning())
        return tu

    @staticmethod
    def _child(unit, tag):
        children = dom.child_elements_by_tag(unit.element, tag)
        return children[0] if children else None

    def _ensure_target(self, unit):
        target = self._child(unit, "target")
        if target is None:
            source = self._child(unit, "source")
            ns = unit.element.nsmap.get(None)
            target = unit.element.makeelement(f"{{{ns}}}target" if ns else "target")
            if source is not None:
                source.addnext(target)
                target.tail = source.tail
            else:
                unit.element.insert(0, target)
        return target

    def read_source(self, unit) -> Optional[str]:
        return dom.inner_xml(self._child(unit, "source"))

    def read_target(self, unit) -> str:
        return dom.inner_xml(self._child(unit, "target"))

    def write_target(self, unit, fragment: str):
        dom.replace_content_with_xml(self._ensure_target(unit), fragment)

    def read_state(self, unit) -> TargetState:
        target = self._child(unit, "target")
        if target is None:
            return TargetState.NEW
        native = target.get("state")
        if native is None:
            return TargetState.TRANSLATED if dom.inner_xml(target) else TargetState.NEW
        if native in XLIFF_NEW_STATES:
            return TargetState.NEW
        if native in XLIFF_FINAL_STATES:
            return TargetState.FINAL
        return TargetState.TRANSLATED

    def write_state(self, unit, state: TargetState):
        self._ensure_target(unit).set("state", state.value)

    def _note(self, unit, origin: str) -> Optional[str]:
        for note in dom.child_elements_by_tag(unit.element, "note"):
            if note.get("from") == origin:
                return note.text
        return None

    def read_meaning(self, unit) -> Optional[str]:
        return self._note(unit, "meaning")

    def read_description(self, unit) -> Optional[str]:
        return self._note(unit, "description")

    def read_source_references(self, unit) -> List[SourceReference]:
        refs = []
        for group in dom.child_elements_by_tag(unit.element, "context-group"):
            if group.get("purpose") != "location":
                continue
            sourcefile, linenumber = None, None
            for context in dom.child_elements_by_tag(group, "context"):
                if context.get("context-type") == "sourcefile":
                    sourcefile = context.text
                elif context.get("context-type") == "linenumber":
                    linenumber = context.text
            if sourcefile and linenumber:
                ref = parse_source_reference(f"{sourcefile}:{linenumber}")
                if ref:
                    refs.append(ref)
        return refs


DIALECTS = {d.format: d for d in (XmbDialect(), XtbDialect(), XliffDialect())}


def dialect_for(format_tag: str) -> Dialect:
    dialect = DIALECTS.get(format_tag)
    if dialect is None:
        raise UnsupportedOperationError(f'Unknown format "{format_tag}", expected one of {", ".join(DIALECTS)}')
    return dialect


def detect_format(root) -> Optional[str]:
    """Format tag for a parsed root element, None if no dialect matches."""
    name = dom.local_name(root)
    if name == XmbDialect.root_tag:
        return FORMAT_XMB
    if name == XtbDialect.root_tag:
        return FORMAT_XTB
    if name == XliffDialect.root_tag and (root.get("version") or "1.2").startswith("1."):
        return FORMAT_XLIFF
    return None
