# ocifsync/models.py
"""
Pydantic models for OCIF SOAP operations and their normalized results.

Request models carry the CG (canonical) payload of one OCIF operation and
know which SOAP template and response element belong to it. Result models
give every caller the same camelCase contract regardless of which fault or
success shape the upstream service produced; dump them with
``model_dump(by_alias=True)``.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ocifsync.utils import XmlnsAttribute

# =============================================================================
# Request models
# =============================================================================


class OcifOperationRequest(BaseModel, ABC):
    """
    Abstract base class for all OCIF operation requests.

    Subclasses must define:
    - operation_name: The SOAP operation name (used for SOAPAction)
    - template_name: The SOAP XML template filename
    - response_element: The element expected inside the response Body
    - to_payload(): The plain CG payload handed to the request builder
    """

    operation_name: ClassVar[str] = ''
    template_name: ClassVar[str] = ''
    response_element: ClassVar[str] = ''

    @abstractmethod
    def to_payload(self) -> dict[str, Any]:
        """Return the plain CG payload for the request builder."""


class InvolvedPartyRequest(OcifOperationRequest):
    """
    Fields shared by the involved-party operations.

    Unknown CG fields are kept and passed through to the request builder.

    Attributes:
        originator_data: Channel/application/user of the caller (SOAP header).
        identifier: Involved party identifier ({'id': ..., 'type': ...}).
    """

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    originator_data: dict[str, Any] | None = Field(None, alias='originatorData')
    identifier: dict[str, Any] | None = None

    @field_validator('identifier')
    @classmethod
    def identifier_has_id(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        """An identifier, when given, must carry a non-empty id."""
        if v is not None and not v.get('id'):
            raise ValueError('identifier.id must not be empty')
        return v

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class AmendInvolvedPartyRequest(InvolvedPartyRequest):
    """
    Request model for the AmendInvolvedParty operation.

    Attributes:
        foreign_indicia: Foreign indicia records to add/amend/delete.
        foreign_tax_trust: Foreign tax trust records to add/amend/delete.
    """

    operation_name: ClassVar[str] = 'AmendInvolvedParty'
    template_name: ClassVar[str] = 'amendInvolvedParty.xml'
    response_element: ClassVar[str] = 'AmendInvolvedPartyResponse'

    foreign_indicia: list[dict[str, Any]] | None = Field(None, alias='foreignIndicia')
    foreign_tax_trust: list[dict[str, Any]] | None = Field(None, alias='foreignTaxTrust')


class GetInvolvedPartyRequest(InvolvedPartyRequest):
    """
    Request model for the GetInvolvedParty operation.

    Each ``request*`` flag asks OCIF for one section of the party's tax
    record; at least one must be True for the request to be sent.
    """

    operation_name: ClassVar[str] = 'GetInvolvedParty'
    template_name: ClassVar[str] = 'getInvolvedParty.xml'
    response_element: ClassVar[str] = 'GetInvolvedPartyResponse'

    request_foreign_tax_entity: bool | None = Field(None, alias='requestForeignTaxEntity')
    request_foreign_tax_trust: bool | None = Field(None, alias='requestForeignTaxTrust')
    request_foreign_indicia: bool | None = Field(None, alias='requestForeignIndicia')
    request_foreign_support_documents_list: bool | None = Field(
        None, alias='requestForeignSupportDocumentsList'
    )
    request_foreign_tax_country_list: bool | None = Field(None, alias='requestForeignTaxCountryList')
    request_foreign_tax_individual: bool | None = Field(None, alias='requestForeignTaxIndividual')
    request_foreign_tax_role: bool | None = Field(None, alias='requestForeignTaxRole')

    def request_control(self) -> dict[str, Any]:
        """Return the ``request*`` flags, keyed by their CG names."""
        return {
            key: value for key, value in self.to_payload().items() if key.startswith('request')
        }


# =============================================================================
# Assembly result
# =============================================================================


class AssembledPayload(BaseModel):
    """Namespace-qualified payload plus what is needed to serialize it."""

    model_config = ConfigDict(populate_by_name=True)

    payload_with_ns: dict[str, Any] = Field(default_factory=dict, alias='payloadWithNS')
    xmlns_attributes: list[XmlnsAttribute] = Field(default_factory=list, alias='xmlnsAttributes')
    root_ns: str = Field('', alias='rootNS')


# =============================================================================
# Normalized results
# =============================================================================


class FailureBody(BaseModel):
    """Problem-details style failure description."""

    type: Literal['failure', 'Failure'] = 'failure'
    title: str
    status: int
    detail: str


class NormalizedResponse(BaseModel):
    """Uniform result of the response normalizer."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(..., alias='statusCode')
    response_object: dict[str, Any] = Field(default_factory=dict, alias='responseObject')


class ErrorResponse(BaseModel):
    """Uniform failure result of request-side validators."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(..., alias='statusCode')
    body: FailureBody


class SectionResult(BaseModel):
    """Outcome of mapping one requested section of an OCIF record."""

    model_config = ConfigDict(populate_by_name=True)

    response_control: bool = Field(..., alias='responseControl')
    body: Any


class InvolvedPartyResponse(BaseModel):
    """Mapped GetInvolvedParty record, keyed by CG section name."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(..., alias='statusCode')
    body: dict[str, Any] = Field(default_factory=dict)
