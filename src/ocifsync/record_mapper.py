# ocifsync/record_mapper.py
"""
OCIF to CG mapping of GetInvolvedParty responses.

A GetInvolvedParty response carries one section per kind of tax data. Only
the sections the caller asked for (through its ``request*`` flags) are
mapped. A requested section without records becomes
``{'responseControl': False, 'body': 'no record found for <Section>'}``,
and when none of the requested sections has data the whole response is the
404 record-not-found failure.

Record fields are renamed from OCIF PascalCase to CG camelCase, OCIF
timestamps are converted back to ISO 8601, and the RecordAudit/ObjectIdentifier
pair is folded back into the CG ``sourceObjectRef`` structure the request
side reads it from.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .fault_classifier import FAILURE_TITLE, node_text
from .models import ErrorResponse, GetInvolvedPartyRequest, InvolvedPartyResponse, SectionResult
from .request_builder import FOREIGN_INDICIA_FIELDS, FOREIGN_TAX_TRUST_FIELDS, REQUEST_CONTROL_FLAGS
from .response_normalizer import RESPONSE_PARSE_ERROR, soap_body
from .responses import map_failure_response, map_record_not_found_response
from .utils import convert_ocif_to_iso, is_ocif_timestamp, log_error, parse_xml
from .utils.xml_parser import ATTRIBUTES_KEY, TEXT_KEY

logger: logging.Logger = logging.getLogger(__name__)

RESPONSE_MAPPING_ERROR: str = 'error mapping getInvolvedParty response'
NO_RECORD_FOUND: str = 'no record found for {section}'
NO_FAULT_DETAIL: str = 'no SOAP Fault in response'
OUTPUT_BODY: str = 'GetInvolvedPartyOutputBody'

_REQUEST_FLAGS: dict[str, str] = dict(REQUEST_CONTROL_FLAGS)


@dataclass(frozen=True)
class RecordSection:
    """One section of a GetInvolvedParty response."""

    name: str
    key: str
    is_list: bool
    fields: tuple[tuple[str, str], ...] = ()

    @property
    def flag(self) -> str:
        """CG request flag that asks for this section."""
        return _REQUEST_FLAGS[self.name]


SECTIONS: tuple[RecordSection, ...] = (
    RecordSection('ForeignTaxEntity', 'foreignTaxEntity', is_list=False),
    RecordSection('ForeignTaxTrust', 'foreignTaxTrust', is_list=True, fields=FOREIGN_TAX_TRUST_FIELDS),
    RecordSection('ForeignIndicia', 'foreignIndicia', is_list=True, fields=FOREIGN_INDICIA_FIELDS),
    RecordSection('ForeignSupportDocument', 'foreignSupportDocuments', is_list=True),
    RecordSection('ForeignTaxCountry', 'foreignTaxCountry', is_list=True),
    RecordSection('ForeignTaxIndividual', 'foreignTaxIndividual', is_list=False),
    RecordSection('ForeignTaxRole', 'foreignTaxRole', is_list=True),
)


# --- Records ---


def _cg_name(ocif_name: str) -> str:
    return ocif_name[:1].lower() + ocif_name[1:]


def _has_content(node: Any) -> bool:
    return isinstance(node, Mapping) and any(key != ATTRIBUTES_KEY for key in node)


def _map_value(name: str, value: Any) -> Any:
    if isinstance(value, list):
        return [_map_value(name, item) for item in value]
    if isinstance(value, Mapping):
        if all(key in (ATTRIBUTES_KEY, TEXT_KEY) for key in value):
            return node_text(value)
        return map_record(value)
    if is_ocif_timestamp(value):
        return convert_ocif_to_iso(value, date_only=name.endswith('Date'))
    return value


def map_record(
    record: Mapping[str, Any],
    fields: tuple[tuple[str, str], ...] = (),
) -> dict[str, Any]:
    """
    Map one OCIF record to its CG shape.

    Args:
        record: A parsed (prefix-stripped) OCIF record.
        fields: Known (OCIF element, CG field) pairs; other elements are
                renamed by lower-casing their first letter.

    Returns:
        The CG record. RecordAudit.LastMaintainedDate becomes
        ``lastMaintainedDate`` (ISO timestamp) and the audit user plus
        ObjectIdentifier become ``sourceObjectRef[0].objectRef[0]``.
    """
    renames: dict[str, str] = dict(fields)
    result: dict[str, Any] = {}

    for key, value in record.items():
        if key in (ATTRIBUTES_KEY, TEXT_KEY, 'RecordAudit', 'ObjectIdentifier'):
            continue
        name: str = renames.get(key) or _cg_name(key)
        result[name] = _map_value(name, value)

    audit: Any = record.get('RecordAudit')
    audit = audit if isinstance(audit, Mapping) else {}

    last_maintained: Any = audit.get('LastMaintainedDate')
    if last_maintained:
        result['lastMaintainedDate'] = convert_ocif_to_iso(node_text(last_maintained))

    object_ref: dict[str, str] = {}
    user_node: Any = audit.get('LastMaintainedUser')
    user: str = node_text(user_node.get('userID')) if isinstance(user_node, Mapping) else ''
    if user:
        object_ref['refKeyUser'] = user
    object_id: str = node_text(record.get('ObjectIdentifier'))
    if object_id:
        object_ref['refKeyValue'] = object_id
    if object_ref:
        result['sourceObjectRef'] = [{'objectRef': [object_ref]}]

    return result


# --- Sections ---


def _total_records(data: Mapping[str, Any]) -> int | None:
    list_control: Any = data.get('ListControl')
    if not isinstance(list_control, Mapping) or 'TotalRecords' not in list_control:
        return None
    total: str = node_text(list_control['TotalRecords']).strip()
    return int(total) if total.isdigit() else None


def map_section(
    data: Mapping[str, Any],
    section: RecordSection,
    requested: bool,
) -> SectionResult | None:
    """
    Map one section of a GetInvolvedParty response.

    Returns:
        None when the section was not requested. Otherwise a SectionResult
        whose body is the mapped record(s), or the 'no record found for
        <Section>' message with responseControl False. For list sections a
        ListControl.TotalRecords of 0 means no records, whatever else the
        section holds.
    """
    if not requested:
        return None

    raw: Any = data.get(section.name)
    not_found: SectionResult = SectionResult(
        response_control=False, body=NO_RECORD_FOUND.format(section=section.name)
    )

    if section.is_list:
        records: list[Any] = [
            record for record in (raw if isinstance(raw, list) else [raw]) if _has_content(record)
        ]
        if not records or _total_records(data) == 0:
            return not_found
        return SectionResult(
            response_control=True,
            body=[map_record(record, section.fields) for record in records],
        )

    if not _has_content(raw):
        return not_found
    return SectionResult(response_control=True, body=map_record(raw, section.fields))


def map_success_response(
    status_code: int,
    data: Mapping[str, Any] | None,
    request_control: Mapping[str, Any] | None,
) -> InvolvedPartyResponse | ErrorResponse:
    """
    Map the content of a successful GetInvolvedParty response.

    Args:
        status_code: The HTTP status code.
        data: The output body of the response, or None.
        request_control: The caller's ``request*`` flags; a section is
                         requested only when its flag is exactly True.

    Returns:
        An empty body when there is no data, the 404 record-not-found
        failure when no requested section holds records, otherwise the
        mapped sections keyed by CG name.
    """
    if not isinstance(data, Mapping) or not data:
        return InvolvedPartyResponse(status_code=status_code)

    control: Mapping[str, Any] = request_control or {}
    body: dict[str, Any] = {}
    found: bool = False

    for section in SECTIONS:
        result: SectionResult | None = map_section(data, section, control.get(section.flag) is True)
        if result is None:
            continue
        body[section.key] = result.body
        found = found or result.response_control

    if body and not found:
        logger.info('No record found for any requested section')
        return map_record_not_found_response()

    return InvolvedPartyResponse(status_code=status_code, body=body)


def map_fault_response(body: Mapping[str, Any] | None, status_code: int) -> ErrorResponse:
    """Failure with the faultcode as title and the JSON of the fault detail."""
    fault: Any = body.get('Fault') if body is not None else None
    if not isinstance(fault, Mapping):
        return map_failure_response(status_code, FAILURE_TITLE, NO_FAULT_DETAIL)

    title: str = node_text(fault.get('faultcode')) or FAILURE_TITLE
    detail: str = json.dumps(fault.get('detail'), ensure_ascii=False)
    return map_failure_response(status_code, title, detail)


def get_involved_party_ocif_to_cg(
    raw_xml: str | bytes,
    status_code: int,
    request_control: Mapping[str, Any] | None,
) -> InvolvedPartyResponse | ErrorResponse:
    """
    Map a raw GetInvolvedParty response to its CG result.

    Args:
        raw_xml: The raw response body.
        status_code: The HTTP status code.
        request_control: The ``request*`` flags the request was sent with.

    Returns:
        2xx: the mapped record (see map_success_response).
        Otherwise: a failure built from the SOAP Fault.

    Raises:
        XmlParseError: If the body is not well-formed XML (logged with
                       'err parse XML response to JSON').
        Any mapping failure, after logging it once with
        'error mapping getInvolvedParty response'.
    """
    try:
        parsed: dict[str, Any] = parse_xml(raw_xml, explicit_array=False, strip_prefix=True)
    except Exception as e:
        log_error(RESPONSE_PARSE_ERROR, e)
        raise

    try:
        body: Mapping[str, Any] | None = soap_body(parsed)
        if not 200 <= status_code <= 299:
            return map_fault_response(body, status_code)

        content: Any = (
            body.get(GetInvolvedPartyRequest.response_element) if body is not None else None
        )
        if isinstance(content, Mapping) and OUTPUT_BODY in content:
            content = content[OUTPUT_BODY]

        return map_success_response(
            status_code, content if isinstance(content, Mapping) else None, request_control
        )
    except Exception as e:
        log_error(RESPONSE_MAPPING_ERROR, e)
        raise
