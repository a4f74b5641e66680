# ocifsync/__init__.py

from .exceptions import OcifSyncError, TemplateStructureError, XmlParseError
from .fault_classifier import classify, extract_transaction_reference
from .models import (
    AmendInvolvedPartyRequest,
    AssembledPayload,
    GetInvolvedPartyRequest,
    InvolvedPartyResponse,
    NormalizedResponse,
)
from .namespace_injector import inject_namespace
from .ocif_client import OcifClient
from .payload_assembler import PayloadNamespaceAssembler, inject_payload_namespace
from .record_mapper import get_involved_party_ocif_to_cg
from .request_builder import amend_involved_party_cg_to_ocif, get_involved_party_cg_to_ocif
from .response_normalizer import ResponseNormalizer, normalize
from .template_cache import CacheEntry, TemplateCache

__all__: list[str] = [
    # models.py
    'AmendInvolvedPartyRequest',
    'AssembledPayload',
    # template_cache.py
    'CacheEntry',
    # models.py
    'GetInvolvedPartyRequest',
    'InvolvedPartyResponse',
    'NormalizedResponse',
    # ocif_client.py
    'OcifClient',
    # exceptions.py
    'OcifSyncError',
    # payload_assembler.py
    'PayloadNamespaceAssembler',
    # response_normalizer.py
    'ResponseNormalizer',
    # template_cache.py
    'TemplateCache',
    # exceptions.py
    'TemplateStructureError',
    'XmlParseError',
    # request_builder.py
    'amend_involved_party_cg_to_ocif',
    # fault_classifier.py
    'classify',
    'extract_transaction_reference',
    # request_builder.py
    'get_involved_party_cg_to_ocif',
    # record_mapper.py
    'get_involved_party_ocif_to_cg',
    # namespace_injector.py
    'inject_namespace',
    # payload_assembler.py
    'inject_payload_namespace',
    # response_normalizer.py
    'normalize',
]
