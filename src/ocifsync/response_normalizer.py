# ocifsync/response_normalizer.py
"""
Normalization of raw OCIF SOAP responses.

Success (2xx) responses yield the parsed document; everything
else is treated as a SOAP Fault and classified. Either way the caller gets
the same {statusCode, responseObject} shape.
"""

import logging
from collections.abc import Mapping
from typing import Any

from .fault_classifier import FaultClassification, classify
from .models import AmendInvolvedPartyRequest, FailureBody, NormalizedResponse
from .utils import log_error, parse_xml

logger: logging.Logger = logging.getLogger(__name__)

RESPONSE_PARSE_ERROR: str = 'err parse XML response to JSON'


def soap_body(parsed: dict[str, Any]) -> Mapping[str, Any] | None:
    """Return Envelope.Body of a prefix-stripped response parse, or None."""
    envelope: Any = parsed.get('Envelope')
    if not isinstance(envelope, Mapping):
        return None
    body: Any = envelope.get('Body')
    return body if isinstance(body, Mapping) else None


class ResponseNormalizer:
    """
    Turns a raw SOAP response and its HTTP status into a NormalizedResponse.

    Attributes:
        response_element: Local name of the success element inside the Body.
    """

    def __init__(self, response_element: str = AmendInvolvedPartyRequest.response_element) -> None:
        self.response_element: str = response_element

    def normalize(self, raw_xml: str | bytes, status_code: int) -> NormalizedResponse:
        """
        Normalize one response.

        Args:
            raw_xml: The raw response body.
            status_code: The HTTP status code.

        Returns:
            2xx: responseObject is the whole parsed document, or {} when the
            response element is missing or empty.
            Otherwise: responseObject is a failure body built from the Fault.

        Raises:
            XmlParseError: If the body is not well-formed XML (logged once).
        """
        try:
            parsed: dict[str, Any] = parse_xml(raw_xml, explicit_array=False, strip_prefix=True)
        except Exception as e:
            log_error(RESPONSE_PARSE_ERROR, e)
            raise

        body: Mapping[str, Any] | None = soap_body(parsed)

        if 200 <= status_code <= 299:
            return self._success(parsed, body, status_code)
        return self._failure(body, status_code)

    def _success(
        self,
        parsed: dict[str, Any],
        body: Mapping[str, Any] | None,
        status_code: int,
    ) -> NormalizedResponse:
        content: Any = body.get(self.response_element) if body is not None else None
        if not content:
            logger.debug('No %r element in successful response', self.response_element)
            return NormalizedResponse(status_code=status_code, response_object={})

        return NormalizedResponse(status_code=status_code, response_object=parsed)

    def _failure(self, body: Mapping[str, Any] | None, status_code: int) -> NormalizedResponse:
        fault: Any = body.get('Fault') if body is not None else None
        classification: FaultClassification = classify(fault)
        logger.info(
            'OCIF fault (HTTP %r): %s',
            status_code,
            classification.category or 'unclassified',
        )

        failure: FailureBody = FailureBody(
            type='failure',
            title=classification.title,
            status=status_code,
            detail=classification.detail,
        )
        return NormalizedResponse(status_code=status_code, response_object=failure.model_dump())


def normalize(
    raw_xml: str | bytes,
    status_code: int,
    response_element: str = AmendInvolvedPartyRequest.response_element,
) -> NormalizedResponse:
    """Normalize a response with a one-off ResponseNormalizer."""
    return ResponseNormalizer(response_element).normalize(raw_xml, status_code)
