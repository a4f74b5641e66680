# ocifsync/fault_classifier.py
"""
SOAP fault classification.

Maps a parsed SOAP Fault to a title/detail pair. The category is found by a
case-sensitive substring match on the faultcode; the lookup of the matching
detail entry and of faultInfo is case-insensitive on local names, so
'ns:SystemFault' under detail is found for the 'systemfault' category.
Classification never raises: every branch has a fallback string.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from .template import local_name
from .utils.xml_parser import TEXT_KEY

SYSTEM_FAULT: str = 'systemfault'
DATA_VALIDATION_FAULT: str = 'datavalidationfault'
DATA_ACCESS_FAULT: str = 'dataaccessfault'

FAULT_CATEGORIES: tuple[str, ...] = (SYSTEM_FAULT, DATA_VALIDATION_FAULT, DATA_ACCESS_FAULT)

FAILURE_TITLE: str = 'internal Server error'
GENERIC_FAILURE: str = 'MidTier AmendOCIFInvolved Service Failure'
TRANSACTION_REFERENCE_KEY: str = 'TRANSACTION_REFERENCE'
NO_TRANSACTION_REFERENCE: str = 'no TRANSACTION_REFERENCE found'


class FaultClassification(BaseModel):
    """Result of classifying one SOAP fault."""

    category: str | None = None
    title: str
    detail: str


def node_text(value: Any) -> str:
    """Text content of a parsed node ('' when there is none)."""
    if isinstance(value, list):
        return node_text(value[0]) if value else ''
    if isinstance(value, Mapping):
        return node_text(value.get(TEXT_KEY, ''))
    if value is None:
        return ''
    return str(value)


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _get_ci(node: Any, name: str) -> Any:
    """Look up a child by local name, ignoring case and namespace prefix."""
    if not isinstance(node, Mapping):
        return None
    wanted: str = name.lower()
    for key, value in node.items():
        if isinstance(key, str) and local_name(key).lower() == wanted:
            return value
    return None


def extract_transaction_reference(parameters: Any) -> str:
    """
    Extract the TRANSACTION_REFERENCE value from faultInfo parameters.

    Args:
        parameters: A list of {key, value} entries, a single {key, value}
                    entry, or None.

    Returns:
        The reference, or 'no TRANSACTION_REFERENCE found'.
    """
    if isinstance(parameters, list):
        for parameter in parameters:
            if isinstance(parameter, Mapping) and node_text(parameter.get('key')) == TRANSACTION_REFERENCE_KEY:
                return node_text(parameter.get('value'))
        return NO_TRANSACTION_REFERENCE

    if isinstance(parameters, Mapping):
        value: Any = parameters.get('value')
        return NO_TRANSACTION_REFERENCE if value is None else node_text(value)

    return NO_TRANSACTION_REFERENCE


def _find_fault_info(fault: Mapping[str, Any], category: str) -> Any:
    detail: Any = _first(_get_ci(fault, 'detail'))

    entry: Any = _first(_get_ci(detail, category))
    fault_info: Any = _get_ci(entry, 'faultInfo')
    if fault_info is None:
        fault_info = _get_ci(detail, 'faultInfo')
    if fault_info is None:
        fault_info = _get_ci(fault, 'faultInfo')
    return _first(fault_info)


def classify(fault: Any) -> FaultClassification:
    """
    Classify a parsed SOAP Fault.

    Args:
        fault: The Fault node ({faultcode, detail, faultInfo}).

    Returns:
        For a known category: title 'internal Server error' and detail
        '<category>: TRANSACTION_REFERENCE: <ref>', with the faultInfo
        additionalText appended for system faults. Otherwise the generic
        failure text for both title and detail.

    Example:
        >>> classify({'faultcode': 'ns:dataaccessfault'}).detail
        'dataaccessfault: TRANSACTION_REFERENCE: no TRANSACTION_REFERENCE found'
    """
    fault_code: str = node_text(_get_ci(fault, 'faultcode'))
    category: str | None = next((c for c in FAULT_CATEGORIES if c in fault_code), None)

    if category is None:
        return FaultClassification(title=GENERIC_FAILURE, detail=GENERIC_FAILURE)

    fault_info: Any = _find_fault_info(fault, category)
    reference: str = extract_transaction_reference(_get_ci(fault_info, 'parameter'))
    detail: str = f'{category}: {TRANSACTION_REFERENCE_KEY}: {reference}'

    if category == SYSTEM_FAULT:
        additional_text: str = node_text(_get_ci(fault_info, 'additionalText'))
        if additional_text:
            detail = f'{detail}, {additional_text}'

    return FaultClassification(category=category, title=FAILURE_TITLE, detail=detail)
