# ocifsync/template.py
"""
Namespace template model.

A template is a tree keyed by qualified names ('prefix:LocalName'). It comes
either as a hand-written dict (``{}`` for a leaf, a dict for a nested
structure, ``[sub]`` for a homogeneous list) or as the explicit-array parse
of a SOAP XML template, where every child element is wrapped in a list.

compile_template turns both forms into a small tagged tree of LeafNode,
ObjectNode and ListNode so the injector never has to guess a node's kind
from raw Python types.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict

from .exceptions import TemplateStructureError
from .utils.xml_parser import ATTRIBUTES_KEY, TEXT_KEY


@dataclass(frozen=True)
class LeafNode:
    """Placeholder for a single value."""


@dataclass(frozen=True)
class ObjectNode:
    """Nested structure; children keep template (document) order."""

    children: dict[str, 'TemplateNode'] = field(default_factory=dict)


@dataclass(frozen=True)
class ListNode:
    """Homogeneous list; ``item`` is applied to every payload element."""

    item: 'TemplateNode'


TemplateNode = LeafNode | ObjectNode | ListNode


def local_name(key: str) -> str:
    """Return the part of a qualified key after the first ':' (the payload key)."""
    return key.split(':', 1)[-1]


def compile_template(raw: Any) -> TemplateNode | None:
    """
    Compile a raw template into tagged nodes.

    Rules:
        - None, [] and [None] compile to None (the key is absent).
        - [sub] compiles to ListNode(compile(sub)).
        - A dict with at least one usable child compiles to ObjectNode;
          '$' (attributes), '_' (text) and non-string keys are ignored.
        - Anything else ({} or element text) compiles to LeafNode.

    Already compiled nodes are returned unchanged.
    """
    if raw is None:
        return None

    if isinstance(raw, (LeafNode, ObjectNode, ListNode)):
        return raw

    if isinstance(raw, list):
        if not raw:
            return None
        item: TemplateNode | None = compile_template(raw[0])
        return ListNode(item) if item is not None else None

    if isinstance(raw, dict):
        children: dict[str, TemplateNode] = {}
        for key, value in raw.items():
            if not isinstance(key, str) or key in (ATTRIBUTES_KEY, TEXT_KEY):
                continue
            node: TemplateNode | None = compile_template(value)
            if node is not None:
                children[key] = node
        return ObjectNode(children) if children else LeafNode()

    return LeafNode()


# --- SOAP envelope layout ---


class EnvelopeLayout(BaseModel):
    """Element names of a parsed SOAP template."""

    model_config = ConfigDict(frozen=True)

    root_name: str
    header_name: str | None
    body_name: str
    operation_name: str


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _find_child_name(node: dict[str, Any], wanted: str) -> str | None:
    for key in node:
        if key not in (ATTRIBUTES_KEY, TEXT_KEY) and local_name(key) == wanted:
            return key
    return None


def describe_envelope(template: dict[str, Any]) -> EnvelopeLayout:
    """
    Locate the envelope, header, body and operation elements of a template.

    Args:
        template: The explicit-array parse of a SOAP XML template.

    Returns:
        The element names. ``operation_name`` is the first element inside
        the SOAP Body (the root namespace name used to select the
        sub-template).

    Raises:
        TemplateStructureError: If there is no Body or no element inside it.
    """
    if not isinstance(template, dict) or len(template) != 1:
        raise TemplateStructureError('Template must have exactly one root element')

    root_name, root = next(iter(template.items()))
    if not isinstance(root, dict):
        raise TemplateStructureError(f'No SOAP Body element found under {root_name!r}')

    body_name: str | None = _find_child_name(root, 'Body')
    if body_name is None:
        raise TemplateStructureError(f'No SOAP Body element found under {root_name!r}')

    body: Any = _first(root[body_name])
    operation_names: list[str] = (
        [key for key in body if key not in (ATTRIBUTES_KEY, TEXT_KEY)]
        if isinstance(body, dict)
        else []
    )
    if not operation_names:
        raise TemplateStructureError(f'No operation element found inside {body_name!r}')

    return EnvelopeLayout(
        root_name=root_name,
        header_name=_find_child_name(root, 'Header'),
        body_name=body_name,
        operation_name=operation_names[0],
    )


def operation_subtemplate(template: dict[str, Any], layout: EnvelopeLayout) -> Any:
    """Return the raw sub-template of the operation element inside the Body."""
    body: dict[str, Any] = _first(template[layout.root_name][layout.body_name])
    return _first(body[layout.operation_name])


def header_subtemplate(template: dict[str, Any], layout: EnvelopeLayout) -> Any:
    """Return the raw sub-template of the SOAP Header, or None when absent."""
    if layout.header_name is None:
        return None
    return _first(template[layout.root_name][layout.header_name])
