# ocifsync/namespace_injector.py
"""
Namespace injection: copy a plain payload into the qualified shape of a template.

For every template key 'ns:Name' the payload is looked up under 'Name'.
Keys missing from the payload (or mapped to None) are omitted entirely, so
the serialized XML never carries empty placeholders for absent data. The
injector never raises; template/payload shape disagreements degrade to
omission or to an empty list (a payload list under a non-list template key).
"""

from collections.abc import Mapping
from typing import Any

from .template import LeafNode, ListNode, ObjectNode, TemplateNode, compile_template, local_name


def _inject_node(node: TemplateNode, payload: Any) -> dict[str, Any]:
    if not isinstance(payload, Mapping):
        return {}

    # A single object under a list-shaped template uses the list's item
    while isinstance(node, ListNode):
        node = node.item

    if isinstance(node, LeafNode):
        return {}

    return _inject_object(node, payload)


def _single_wrapper(node: TemplateNode) -> tuple[str, TemplateNode] | None:
    if isinstance(node, ObjectNode) and len(node.children) == 1:
        key, child = next(iter(node.children.items()))
        if isinstance(child, (ObjectNode, ListNode)):
            return key, child
    return None


def _inject_list_element(node: TemplateNode, element: Any) -> dict[str, Any]:
    """
    Inject one element of a payload list.

    List items are often declared through a wrapper element
    (<ns:Items><ns:Item>...</ns:Item></ns:Items>) that the payload does not
    spell out. When nothing in the element matches the item template and
    the item has exactly one nested child, the element is injected as that
    child's content instead.
    """
    result: dict[str, Any] = _inject_node(node, element)
    if result or not isinstance(element, Mapping):
        return result

    while isinstance(node, ListNode):
        node = node.item

    wrapper: tuple[str, TemplateNode] | None = _single_wrapper(node)
    if wrapper is None:
        return result

    key, child = wrapper
    wrapped: dict[str, Any] = _inject_node(child, element)
    return {key: wrapped} if wrapped else result


def _inject_object(node: ObjectNode, payload: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}

    for key, child in node.children.items():
        if not isinstance(key, str):
            continue
        bare_name: str = local_name(key)
        if bare_name not in payload:
            continue

        value: Any = payload[bare_name]
        if value is None:
            continue

        if isinstance(value, list):
            if isinstance(child, ListNode):
                result[key] = [_inject_list_element(child.item, element) for element in value]
            else:
                result[key] = []
        elif isinstance(value, Mapping):
            result[key] = _inject_node(child, value)
        else:
            result[key] = value

    return result


def inject_namespace(template: Any, payload: Any) -> dict[str, Any]:
    """
    Build the namespace-qualified version of ``payload``.

    Args:
        template: A raw template (dict form or explicit-array XML parse) or
                  an already compiled TemplateNode.
        payload: Plain data keyed by local names.

    Returns:
        A new dict keyed by the template's qualified names, holding only the
        keys present in the payload. Scalars are copied verbatim, nested
        objects and lists are transformed recursively. Missing or non-dict
        template/payload yields {}.

    Example:
        >>> inject_namespace({'ns:Items': [{'ns:Name': {}}]}, {'Items': [{'Name': 'a'}]})
        {'ns:Items': [{'ns:Name': 'a'}]}
    """
    node: TemplateNode | None = compile_template(template)
    if node is None:
        return {}
    return _inject_node(node, payload)
