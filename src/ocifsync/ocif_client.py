# ocifsync/ocif_client.py
"""
OCIF SOAP API Client

This module provides a high-level client for the OCIF involved-party SOAP
service. It builds requests from CG payloads through the template-driven
request builder, posts them, and maps the responses back to CG results.
"""

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import requests

from ocifsync.models import (
    AmendInvolvedPartyRequest,
    ErrorResponse,
    GetInvolvedPartyRequest,
    InvolvedPartyResponse,
    NormalizedResponse,
    OcifOperationRequest,
)
from ocifsync.payload_assembler import PayloadNamespaceAssembler
from ocifsync.record_mapper import get_involved_party_ocif_to_cg
from ocifsync.request_builder import amend_involved_party_cg_to_ocif, get_involved_party_cg_to_ocif
from ocifsync.response_normalizer import ResponseNormalizer
from ocifsync.responses import validate_request_control
from ocifsync.template_cache import TemplateCache
from ocifsync.utils import OcifSyncConfig, load_config, log_info, setup_logger
from ocifsync.utils.config_loader import LoggingSection

logger: logging.Logger = logging.getLogger(__name__)


class OcifClient:
    """
    Client for the OCIF SOAP API.

    HTTP error statuses are returned, not raised: OCIF reports business
    failures as SOAP Faults with 4xx/5xx statuses, and those bodies must
    reach the response normalizer.

    Attributes:
        config: The configuration object containing endpoint and client settings.
        base_soap_headers: The base HTTP headers used for all SOAP requests.
                          The SOAPAction header is added per-operation.
        assembler: Payload assembler (and template cache) used to build requests.

    Usage:
        >>> client = OcifClient()
        >>> result = await client.amend_involved_party(payload)
        >>> result.model_dump(by_alias=True)
    """

    def __init__(
        self,
        config_path: Path | None = None,
        config: OcifSyncConfig | None = None,
        assembler: PayloadNamespaceAssembler | None = None,
    ) -> None:
        """
        Initialize the OCIF client.

        Args:
            config_path: Optional path to the configuration file.
                        If None, uses the default configuration location
                        as defined in load_config().
            config: Optional pre-loaded OcifSyncConfig instance. If provided,
                   config_path is ignored.
            assembler: Optional assembler. If None, one is built from the
                      'templates' section of the configuration.

        Raises:
            FileNotFoundError: If the config file doesn't exist.
            ValueError: If the config file is invalid.
        """
        if config is not None:
            self.config: OcifSyncConfig = config
            logger.debug('Initializing OcifClient with injected configuration')
        elif config_path is not None:
            logger.info('Loading OCIF configuration from: %r', config_path)
            self.config = load_config(config_path)
        else:
            logger.info('Loading OCIF configuration from default location')
            self.config = load_config()

        self._configure_logging()

        self.base_soap_headers: dict[str, str] = {
            'Content-Type': 'text/xml; charset=utf-8',
            'Accept': 'text/xml',
        }

        self.assembler: PayloadNamespaceAssembler = (
            assembler
            if assembler is not None
            else PayloadNamespaceAssembler(TemplateCache.from_config(self.config.templates))
        )
        logger.debug('OcifClient ready for %r', str(self.config.ocif.endpoint_url))

    def _configure_logging(self) -> None:
        """Apply the 'logging' section to the package logger."""
        settings: LoggingSection = self.config.logging
        file_level: int | None = settings.get_file_level_int()
        if settings.file_path is not None and file_level is not None:
            setup_logger(file_level, settings.file_path)
        else:
            setup_logger(settings.get_console_level_int())

    def _build_headers(self, operation_name: str) -> dict[str, str]:
        """
        Build complete HTTP headers for a SOAP operation.

        Args:
            operation_name: The name of the SOAP operation being executed.

        Returns:
            A dictionary of HTTP headers ready for the request.
        """
        return {
            **self.base_soap_headers,
            'SOAPAction': f'{self.config.ocif.soap_action_prefix}{operation_name}',
        }

    def _send_request(
        self,
        operation_name: str,
        headers: dict[str, str],
        body: str,
    ) -> requests.Response:
        """
        Send the SOAP request to the OCIF endpoint.

        Args:
            operation_name: The name of the operation (for logging purposes).
            headers: The complete HTTP headers for the request.
            body: The SOAP envelope as an XML string.

        Returns:
            The HTTP response, whatever its status code.

        Raises:
            requests.exceptions.Timeout: If the request times out.
            requests.exceptions.RequestException: For other network-level errors.
        """
        try:
            logger.debug(
                'Sending SOAP request to %r (connect/read timeout=%r)',
                str(self.config.ocif.endpoint_url),
                self.config.client.request_timeout,
            )

            response: requests.Response = requests.post(
                str(self.config.ocif.endpoint_url),
                data=body.encode('utf-8'),
                headers=headers,
                timeout=self.config.client.request_timeout,
                verify=self.config.client.verify_ssl,
            )

            logger.info(
                'Operation %r completed (HTTP %r)',
                operation_name,
                response.status_code,
            )
            return response

        except requests.exceptions.Timeout as timeout_error:
            logger.error(
                'Request timeout for operation %r after %r: %r',
                operation_name,
                self.config.client.request_timeout,
                timeout_error,
            )
            raise

        except requests.exceptions.RequestException as request_error:
            logger.error(
                'Network error for operation %r: %r', operation_name, request_error
            )
            raise

    async def _execute(self, request: OcifOperationRequest, body: str) -> requests.Response:
        """Trace and post one built envelope off the event loop."""
        log_info(f'{request.operation_name} OCIF XML request', body)

        response: requests.Response = await asyncio.to_thread(
            self._send_request,
            request.operation_name,
            self._build_headers(request.operation_name),
            body,
        )
        log_info(f'{request.operation_name} OCIF XML response', response.text)
        return response

    async def amend_involved_party(
        self,
        payload: AmendInvolvedPartyRequest | Mapping[str, Any],
    ) -> NormalizedResponse:
        """
        Execute AmendInvolvedParty for a CG payload.

        Args:
            payload: A validated request model or the raw CG payload.

        Returns:
            The normalized response.

        Raises:
            pydantic.ValidationError: If the payload is invalid.
            XmlParseError: If the template or the response cannot be parsed.
            requests.exceptions.RequestException: For network-level errors.
        """
        request: AmendInvolvedPartyRequest = (
            payload
            if isinstance(payload, AmendInvolvedPartyRequest)
            else AmendInvolvedPartyRequest.model_validate(payload)
        )
        logger.info('Executing OCIF operation: %r', request.operation_name)

        body: str = await amend_involved_party_cg_to_ocif(
            request.to_payload(), self.assembler, request.template_name
        )
        response: requests.Response = await self._execute(request, body)

        return ResponseNormalizer(request.response_element).normalize(
            response.content, response.status_code
        )

    async def get_involved_party(
        self,
        payload: GetInvolvedPartyRequest | Mapping[str, Any],
    ) -> InvolvedPartyResponse | ErrorResponse:
        """
        Execute GetInvolvedParty for a CG payload.

        Requests that ask for no data at all are rejected with a 400
        Invalid Data Error and never reach OCIF.

        Args:
            payload: A validated request model or the raw CG payload.

        Returns:
            The mapped record, or a failure (400 invalid request, 404 no
            record found, or one built from a SOAP Fault).

        Raises:
            pydantic.ValidationError: If the payload is invalid.
            XmlParseError: If the template or the response cannot be parsed.
            requests.exceptions.RequestException: For network-level errors.
        """
        request: GetInvolvedPartyRequest = (
            payload
            if isinstance(payload, GetInvolvedPartyRequest)
            else GetInvolvedPartyRequest.model_validate(payload)
        )
        request_control: dict[str, Any] = request.request_control()

        invalid: ErrorResponse | None = validate_request_control(request_control)
        if invalid is not None:
            logger.warning('Rejected %r request: no data requested', request.operation_name)
            return invalid

        logger.info('Executing OCIF operation: %r', request.operation_name)

        body: str = await get_involved_party_cg_to_ocif(
            request.to_payload(), self.assembler, request.template_name
        )
        response: requests.Response = await self._execute(request, body)

        return get_involved_party_ocif_to_cg(
            response.content, response.status_code, request_control
        )
