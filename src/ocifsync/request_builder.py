# ocifsync/request_builder.py
"""
CG to OCIF request mapping for AmendInvolvedParty and GetInvolvedParty.

Turns the canonical (camelCase) payload into the plain OCIF shape, then
qualifies it against the SOAP template and serializes the envelope.
"""

import logging
from collections.abc import Mapping
from typing import Any

from .models import AmendInvolvedPartyRequest, AssembledPayload, GetInvolvedPartyRequest
from .namespace_injector import inject_namespace
from .payload_assembler import PayloadNamespaceAssembler, get_default_assembler
from .template_cache import CacheEntry
from .utils import build_xml, format_for_ocif, get_correlation_id, log_error

logger: logging.Logger = logging.getLogger(__name__)

REQUEST_MAPPING_ERROR: str = 'error mapping amendInvolvedParty request'
GET_REQUEST_MAPPING_ERROR: str = 'error mapping getInvolvedParty request'
HEADER_VERSION: str = '1.0'

# (OCIF element, CG field) pairs, in template order
FOREIGN_INDICIA_FIELDS: tuple[tuple[str, str], ...] = (
    ('TransitNumber', 'transitNumber'),
    ('ForeignTaxCountry', 'foreignTaxCountry'),
    ('ForeignTaxIdentifier', 'foreignTaxIdentifier'),
    ('ClassificationScheme', 'classificationScheme'),
    ('OwningIPRT', 'owningIprt'),
    ('InformationCollectorID', 'informationCollectorId'),
    ('InformationCollectorName', 'informationCollectorName'),
)

FOREIGN_TAX_TRUST_FIELDS: tuple[tuple[str, str], ...] = (
    ('TrustAccountNumber', 'trustAccountNumber'),
    ('SystemIdentificationCode', 'systemIdentificationCode'),
    ('PreexistingProfile', 'preexistingProfile'),
    ('PreexistingProfileCRS', 'preexistingProfileCrs'),
    ('TaxAccountClassCRS', 'taxAccountClassCrs'),
    ('TaxAccountClass', 'taxAccountClass'),
    ('TaxEntityClass', 'taxEntityClass'),
    ('IndiciaCheckComplete', 'indiciaCheckComplete'),
    ('OwningSLDP', 'owningSldp'),
)

HEADER_FIELDS: tuple[str, ...] = ('channel', 'appCatId', 'userId', 'country')

# (OCIF RequestControl element, CG request flag)
REQUEST_CONTROL_FLAGS: tuple[tuple[str, str], ...] = (
    ('ForeignTaxEntity', 'requestForeignTaxEntity'),
    ('ForeignTaxTrust', 'requestForeignTaxTrust'),
    ('ForeignIndicia', 'requestForeignIndicia'),
    ('ForeignSupportDocument', 'requestForeignSupportDocumentsList'),
    ('ForeignTaxCountry', 'requestForeignTaxCountryList'),
    ('ForeignTaxIndividual', 'requestForeignTaxIndividual'),
    ('ForeignTaxRole', 'requestForeignTaxRole'),
)


def _compact(value: dict[str, Any]) -> dict[str, Any]:
    """Drop None values and nested dicts left empty."""
    result: dict[str, Any] = {}
    for key, item in value.items():
        if isinstance(item, dict):
            item = _compact(item)
            if not item:
                continue
        if item is not None:
            result[key] = item
    return result


def _object_ref(record: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return sourceObjectRef[0].objectRef[0], or {} when any level is missing."""
    source_refs: Any = record.get('sourceObjectRef')
    if not isinstance(source_refs, list) or not source_refs:
        return {}
    object_refs: Any = source_refs[0].get('objectRef') if isinstance(source_refs[0], Mapping) else None
    if not isinstance(object_refs, list) or not object_refs or not isinstance(object_refs[0], Mapping):
        return {}
    return object_refs[0]


def _map_record(
    record: Mapping[str, Any],
    fields: tuple[tuple[str, str], ...],
) -> dict[str, Any]:
    object_ref: Mapping[str, Any] = _object_ref(record)

    mapped: dict[str, Any] = {ocif_name: record.get(cg_name) for ocif_name, cg_name in fields}
    mapped['RecordAudit'] = {
        'LastMaintainedDate': format_for_ocif(record.get('lastMaintainedDate')),
        'LastMaintainedUser': {'userID': object_ref.get('refKeyUser')},
    }
    mapped['ObjectIdentifier'] = object_ref.get('refKeyValue')
    return _compact(mapped)


def map_foreign_indicia_list(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map CG foreignIndicia records to OCIF AmendForeignIndicia entries.

    Returns:
        {'IsForeignIndiciaList': bool, 'foreignIndiciaData': {'AmendForeignIndicia': [...]}}
    """
    records: list[Mapping[str, Any]] = data.get('foreignIndicia') or []

    entries: list[dict[str, Any]] = []
    for record in records:
        indicia: dict[str, Any] = _map_record(record, FOREIGN_INDICIA_FIELDS)
        collected: str | None = format_for_ocif(record.get('informationCollectedTimestamp'))
        if collected is not None:
            indicia['InformationCollectedTimestamp'] = collected
        entries.append(_compact({'Action': record.get('action'), 'ForeignIndicia': indicia}))

    return {
        'IsForeignIndiciaList': bool(entries),
        'foreignIndiciaData': {'AmendForeignIndicia': entries},
    }


def map_foreign_tax_trust_list(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map CG foreignTaxTrust records to OCIF AmendForeignTaxTrust entries.

    Returns:
        {'IsForeignTaxRole': bool, 'foreignTaxTrustData': {'AmendForeignTaxTrust': [...]}}
    """
    records: list[Mapping[str, Any]] = data.get('foreignTaxTrust') or []

    entries: list[dict[str, Any]] = [
        _compact(
            {
                'Action': record.get('action'),
                'ForeignTaxTrust': _map_record(record, FOREIGN_TAX_TRUST_FIELDS),
            }
        )
        for record in records
    ]

    return {
        'IsForeignTaxRole': bool(entries),
        'foreignTaxTrustData': {'AmendForeignTaxTrust': entries},
    }


def map_request_header(originator_data: Mapping[str, Any] | None) -> dict[str, Any]:
    """Build the RequestHeader content from the caller's originatorData."""
    originator: Mapping[str, Any] = originator_data or {}
    header: dict[str, Any] = {'version': HEADER_VERSION}
    header.update({name: originator.get(name) for name in HEADER_FIELDS})
    header['correlationId'] = get_correlation_id()
    return _compact(header)


def map_body(payload: Mapping[str, Any]) -> dict[str, Any] | None:
    """
    Build the plain content of the operation element.

    Returns:
        The body content, or None when the payload carries no party data.
    """
    identifier: Any = payload.get('identifier')
    indicia: dict[str, Any] = map_foreign_indicia_list(payload)
    trusts: dict[str, Any] = map_foreign_tax_trust_list(payload)

    if not (identifier or indicia['IsForeignIndiciaList'] or trusts['IsForeignTaxRole']):
        return None

    body: dict[str, Any] = {}
    if isinstance(identifier, Mapping):
        body['InvolvedPartyIdentifier'] = _compact(
            {'IdentifierValue': identifier.get('id'), 'IdentifierType': identifier.get('type')}
        )
    if indicia['IsForeignIndiciaList']:
        body.update(indicia['foreignIndiciaData'])
    if trusts['IsForeignTaxRole']:
        body.update(trusts['foreignTaxTrustData'])
    return body


def map_envelope(payload: Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Map a CG payload into the plain (unqualified) SOAP envelope.

    Example:
        >>> map_envelope({'originatorData': {'channel': 'Online'}})['envelope'].keys()
        dict_keys(['Header'])
    """
    payload = payload or {}
    envelope: dict[str, Any] = {
        'Header': {'RequestHeader': map_request_header(payload.get('originatorData'))},
    }

    body: dict[str, Any] | None = map_body(payload)
    if body is not None:
        envelope['Body'] = body

    return {'envelope': envelope}


def map_request_control(payload: Mapping[str, Any]) -> dict[str, bool]:
    """Map the CG request* flags onto OCIF RequestControl elements (True/False only)."""
    return {
        ocif_name: payload[cg_name]
        for ocif_name, cg_name in REQUEST_CONTROL_FLAGS
        if isinstance(payload.get(cg_name), bool)
    }


def map_get_envelope(payload: Mapping[str, Any] | None) -> dict[str, Any]:
    """Map a GetInvolvedParty CG payload into the plain SOAP envelope."""
    payload = payload or {}
    body: dict[str, Any] = {}

    identifier: Any = payload.get('identifier')
    if isinstance(identifier, Mapping):
        body['InvolvedPartyIdentifier'] = _compact(
            {'IdentifierValue': identifier.get('id'), 'IdentifierType': identifier.get('type')}
        )

    control: dict[str, bool] = map_request_control(payload)
    if control:
        body['RequestControl'] = control

    return {
        'envelope': {
            'Header': {'RequestHeader': map_request_header(payload.get('originatorData'))},
            'Body': body,
        }
    }


async def _serialize_envelope(
    envelope: Mapping[str, Any],
    assembler: PayloadNamespaceAssembler,
    template_name: str,
) -> str:
    """Qualify a plain envelope against its template and serialize it."""
    assembled: AssembledPayload = await assembler.assemble(template_name, envelope.get('Body', {}))
    entry: CacheEntry = await assembler.load(template_name)

    tree: dict[str, Any] = {}
    header: dict[str, Any] = inject_namespace(entry.header_template, envelope['Header'])
    if entry.layout.header_name is not None and header:
        tree[entry.layout.header_name] = header
    tree[entry.layout.body_name] = {assembled.root_ns: assembled.payload_with_ns}

    xml: str = build_xml(entry.layout.root_name, assembled.xmlns_attributes, tree)
    logger.debug('Built %r request (%d bytes)', entry.root_ns, len(xml))
    return xml


async def amend_involved_party_cg_to_ocif(
    payload: Mapping[str, Any] | None,
    assembler: PayloadNamespaceAssembler | None = None,
    template_name: str = AmendInvolvedPartyRequest.template_name,
) -> str:
    """
    Build the AmendInvolvedParty SOAP request XML from a CG payload.

    Args:
        payload: The CG payload.
        assembler: Assembler to use; defaults to the process-wide one.
        template_name: SOAP template filename.

    Returns:
        The serialized SOAP envelope.

    Raises:
        Any mapping, template or serialization failure, after logging it once
        with 'error mapping amendInvolvedParty request'.
    """
    assembler = assembler if assembler is not None else get_default_assembler()

    try:
        return await _serialize_envelope(map_envelope(payload)['envelope'], assembler, template_name)
    except Exception as e:
        log_error(REQUEST_MAPPING_ERROR, e)
        raise


async def get_involved_party_cg_to_ocif(
    payload: Mapping[str, Any] | None,
    assembler: PayloadNamespaceAssembler | None = None,
    template_name: str = GetInvolvedPartyRequest.template_name,
) -> str:
    """
    Build the GetInvolvedParty SOAP request XML from a CG payload.

    Failures are logged once with 'error mapping getInvolvedParty request'
    and re-raised.
    """
    assembler = assembler if assembler is not None else get_default_assembler()

    try:
        return await _serialize_envelope(
            map_get_envelope(payload)['envelope'], assembler, template_name
        )
    except Exception as e:
        log_error(GET_REQUEST_MAPPING_ERROR, e)
        raise
