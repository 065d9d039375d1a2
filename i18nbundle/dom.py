"""
Thin helpers around lxml used by all dialects.

Elements are matched by local name so that namespaced (XLIFF) and
namespace-free (XMB/XTB) documents are handled alike.
"""
import re
from typing import List, Optional, Tuple
from xml.sax.saxutils import escape

from lxml import etree

XML_DECLARATION_REGEX = re.compile(r'^\s*<\?xml[^>]*\?>')
XMLNS_REGEX = re.compile(r'\s+xmlns(:\w+)?="[^"]*"')


def _make_parser() -> etree.XMLParser:
    # Keep whitespace and DOCTYPE as-is, never fetch anything
    return etree.XMLParser(remove_blank_text=False, resolve_entities=False,
                           no_network=True, load_dtd=False)


def parse_document(xml_string: str) -> Tuple[etree._ElementTree, str]:
    """
    Parses a whole document.
    Returns the tree and the XML declaration that was found (or "").
    Raises etree.XMLSyntaxError for text that is not well-formed.
    """
    declaration = ""
    match = XML_DECLARATION_REGEX.match(xml_string)
    if match:
        declaration = match.group(0).strip()
        xml_string = xml_string[match.end():]
    root = etree.fromstring(xml_string.encode("utf-8"), _make_parser())
    return root.getroottree(), declaration


def serialize_document(tree: etree._ElementTree, declaration: str = "") -> str:
    """Serializes a tree back to text, re-emitting the original declaration."""
    content = etree.tostring(tree, encoding="unicode")
    if declaration:
        return declaration + "\n" + content
    return content


def local_name(node) -> Optional[str]:
    """Local tag name of an element, None for comments and processing instructions."""
    if not isinstance(node.tag, str):
        return None
    return etree.QName(node).localname


def elements_by_tag(root, tag: str) -> List[etree._Element]:
    """All elements (root included) with the given local name, in document order."""
    return [e for e in root.iter() if local_name(e) == tag]


def first_element_by_tag(root, tag: str) -> Optional[etree._Element]:
    for e in root.iter():
        if local_name(e) == tag:
            return e
    return None


def child_elements_by_tag(node, tag: str) -> List[etree._Element]:
    return [c for c in node if local_name(c) == tag]


def inner_xml(node, skip_tags=()) -> str:
    """
    Converts an element's *children* to a string (inner XML) without namespace
    declarations. Children with a local name in skip_tags are left out, their
    tail text is kept.
    """
    if node is None:
        return ""

    parts = []
    if node.text:
        parts.append(escape(node.text))
    for child in node:
        if local_name(child) in skip_tags:
            if child.tail:
                parts.append(escape(child.tail))
            continue
        child_str = etree.tostring(child, encoding='unicode', with_tail=True)
        child_str = XMLNS_REGEX.sub('', child_str)
        parts.append(child_str)
    return "".join(parts)


def parse_fragment(xml_fragment: str, namespace: Optional[str] = None) -> etree._Element:
    """
    Parses mixed content by wrapping it into a dummy root.
    Raises etree.XMLSyntaxError if the fragment is not well-formed.
    """
    if namespace:
        dummy_xml = f'<dummy xmlns="{namespace}">{xml_fragment or ""}</dummy>'
    else:
        dummy_xml = f"<dummy>{xml_fragment or ''}</dummy>"
    return etree.fromstring(dummy_xml.encode("utf-8"), _make_parser())


def replace_content_with_xml(element, xml_fragment: str, keep_tags=()):
    """
    Replaces the mixed content of element by the parsed fragment.
    Children whose local name is in keep_tags stay in front of the new content.
    The fragment inherits the element's default namespace.
    """
    dummy_root = parse_fragment(xml_fragment, element.nsmap.get(None))

    kept = [c for c in element if local_name(c) in keep_tags]
    element.text = None
    for child in list(element):
        element.remove(child)

    if kept:
        for child in kept:
            element.append(child)
        # New text goes behind the last kept child
        kept[-1].tail = dummy_root.text
    else:
        element.text = dummy_root.text
    for child in list(dummy_root):
        element.append(child)


def append_child(parent, tag: str, attributes=None, text: Optional[str] = None,
                 tail: Optional[str] = None) -> etree._Element:
    """Appends a new element, namespaced like its parent."""
    ns = etree.QName(parent).namespace
    qualified = f"{{{ns}}}{tag}" if ns else tag
    child = etree.SubElement(parent, qualified)
    for key, value in (attributes or {}).items():
        if value is not None:
            child.set(key, value)
    if text is not None:
        child.text = text
    if tail is not None:
        child.tail = tail
    return child


def remove_element(element):
    """Removes element from its parent, keeping the text that followed it."""
    parent = element.getparent()
    if parent is None:
        return
    previous = element.getprevious()
    tail = element.tail
    parent.remove(element)
    if tail and tail.strip():
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail
