# ocifsync/utils/xml_parser.py
"""
XML parse/serialize utilities for OCIF SOAP messages.

Converts between lxml element trees and plain Python trees that follow the
common XML-to-object convention:

- The document becomes ``{root_name: root_node}``.
- Attributes (namespace declarations first, in document order) live under
  the ``'$'`` key of a node.
- Text lives under ``'_'`` when the element also has attributes or child
  elements; otherwise the node *is* its text ('' for an empty element).
- Child elements are keyed by their (optionally prefixed) name. With
  ``explicit_array=True`` every child is wrapped in a list; otherwise only
  repeated children become lists.
"""

from collections.abc import Iterable
from typing import Any

from lxml import etree
from pydantic import BaseModel, ConfigDict

from ..exceptions import XmlParseError

ATTRIBUTES_KEY: str = '$'
TEXT_KEY: str = '_'

_XML_NAMESPACE: str = 'http://www.w3.org/XML/1998/namespace'


class XmlnsAttribute(BaseModel):
    """One namespace declaration of a template root (e.g. xmlns:soapenv)."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str


# --- Parsing ---


def _qualified_name(element: etree._Element, strip_prefix: bool) -> str:
    local_name: str = etree.QName(element).localname
    if strip_prefix or not element.prefix:
        return local_name
    return f'{element.prefix}:{local_name}'


def _attribute_name(element: etree._Element, raw_name: str) -> str:
    qname: etree.QName = etree.QName(raw_name)
    if qname.namespace is None:
        return qname.localname
    if qname.namespace == _XML_NAMESPACE:
        return f'xml:{qname.localname}'

    for prefix, uri in element.nsmap.items():
        if prefix and uri == qname.namespace:
            return f'{prefix}:{qname.localname}'
    return qname.localname


def _declared_namespaces(element: etree._Element) -> dict[str, str]:
    """Namespace declarations made on this element itself, as xmlns attributes."""
    parent: etree._Element | None = element.getparent()
    inherited: dict[str | None, str] = dict(parent.nsmap) if parent is not None else {}

    declared: dict[str, str] = {}
    for prefix, uri in element.nsmap.items():
        if prefix in inherited and inherited[prefix] == uri:
            continue
        declared['xmlns' if prefix is None else f'xmlns:{prefix}'] = uri
    return declared


def _element_to_node(
    element: etree._Element,
    explicit_array: bool,
    strip_prefix: bool,
) -> Any:
    attributes: dict[str, str] = _declared_namespaces(element)
    for raw_name, value in element.attrib.items():
        attributes[_attribute_name(element, raw_name)] = value

    children: list[etree._Element] = [
        child for child in element if isinstance(child.tag, str)
    ]
    text: str = element.text or ''

    if not attributes and not children:
        return text if text.strip() else ''

    node: dict[str, Any] = {}
    if attributes:
        node[ATTRIBUTES_KEY] = attributes
    if text.strip():
        node[TEXT_KEY] = text

    for child in children:
        name: str = _qualified_name(child, strip_prefix)
        value: Any = _element_to_node(child, explicit_array, strip_prefix)

        if explicit_array:
            node.setdefault(name, []).append(value)
        elif name not in node:
            node[name] = value
        elif isinstance(node[name], list):
            node[name].append(value)
        else:
            node[name] = [node[name], value]

    return node


def parse_xml(
    xml_string: str | bytes,
    *,
    explicit_array: bool = True,
    strip_prefix: bool = False,
) -> dict[str, Any]:
    """
    Parse an XML document into a plain tree.

    Args:
        xml_string: The raw XML document.
        explicit_array: Wrap every child element in a list (template side).
                        When False only repeated elements become lists
                        (response side).
        strip_prefix: Drop namespace prefixes from element names.

    Returns:
        ``{root_name: root_node}``.

    Raises:
        XmlParseError: If the input is not well-formed XML. The lxml error is
                       chained as ``__cause__``.
    """
    if isinstance(xml_string, str):
        raw: bytes = xml_string.encode('utf-8')
    elif isinstance(xml_string, bytes):
        raw = xml_string
    else:
        raise XmlParseError(
            f'XML input must be str or bytes, got {type(xml_string).__name__}'
        )

    parser: etree.XMLParser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root: etree._Element = etree.fromstring(raw, parser=parser)
    except etree.XMLSyntaxError as e:
        raise XmlParseError(str(e)) from e

    return {
        _qualified_name(root, strip_prefix): _element_to_node(
            root, explicit_array, strip_prefix
        )
    }


# --- Serialization ---


def _namespace_map(xmlns_attributes: Iterable[XmlnsAttribute | dict[str, str]]) -> dict[str | None, str]:
    nsmap: dict[str | None, str] = {}
    for item in xmlns_attributes:
        attribute: XmlnsAttribute = XmlnsAttribute.model_validate(item)
        if attribute.name == 'xmlns':
            nsmap[None] = attribute.value
        elif attribute.name.startswith('xmlns:'):
            nsmap[attribute.name.split(':', 1)[1]] = attribute.value
    return nsmap


def _clark_name(name: str, nsmap: dict[str | None, str], is_attribute: bool = False) -> str:
    """Turn 'prefix:Local' into lxml's '{uri}Local' form."""
    if ':' in name:
        prefix, local_name = name.split(':', 1)
        if prefix == 'xml':
            return f'{{{_XML_NAMESPACE}}}{local_name}'
        if prefix not in nsmap:
            raise ValueError(f'Undeclared namespace prefix {prefix!r} in {name!r}')
        return f'{{{nsmap[prefix]}}}{local_name}'

    # Unprefixed attributes never take the default namespace
    if not is_attribute and None in nsmap:
        return f'{{{nsmap[None]}}}{name}'
    return name


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _fill_element(element: etree._Element, value: Any, nsmap: dict[str | None, str]) -> None:
    if value is None:
        return

    if not isinstance(value, dict):
        element.text = _to_text(value)
        return

    for key, child in value.items():
        if key == ATTRIBUTES_KEY:
            for attr_name, attr_value in (child or {}).items():
                if attr_name == 'xmlns' or attr_name.startswith('xmlns:'):
                    continue
                element.set(_clark_name(attr_name, nsmap, is_attribute=True), _to_text(attr_value))
            continue

        if key == TEXT_KEY:
            if child is not None:
                element.text = _to_text(child)
            continue

        items: list[Any] = child if isinstance(child, list) else [child]
        for item in items:
            if item is None:
                continue
            sub_element: etree._Element = etree.SubElement(element, _clark_name(key, nsmap))
            _fill_element(sub_element, item, nsmap)


def build_xml(
    root_name: str,
    xmlns_attributes: Iterable[XmlnsAttribute | dict[str, str]],
    tree: dict[str, Any],
) -> str:
    """
    Serialize a namespaced tree into an XML document.

    Args:
        root_name: Qualified name of the root element (e.g. 'soapenv:Envelope').
        xmlns_attributes: Namespace declarations placed on the root element.
        tree: Children of the root element, keyed by qualified names.

    Returns:
        The XML document as a string, including the XML declaration.

    Raises:
        ValueError: If a name uses a prefix that is not declared.
    """
    nsmap: dict[str | None, str] = _namespace_map(xmlns_attributes)
    root: etree._Element = etree.Element(_clark_name(root_name, nsmap), nsmap=nsmap)
    _fill_element(root, tree, nsmap)

    return etree.tostring(
        root, xml_declaration=True, encoding='UTF-8', pretty_print=True
    ).decode('utf-8')
