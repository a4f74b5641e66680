"""Pytest configuration and shared fixtures for ocifsync tests."""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest
import yaml
from requests import Response

from ocifsync.utils import OcifSyncConfig

BUNDLED_TEMPLATES: Path = Path(__file__).resolve().parent.parent / 'src' / 'ocifsync' / 'templates'


@pytest.fixture(autouse=True)
def restore_package_logger() -> Iterator[None]:
    """Undo handler and level changes made to the 'ocifsync' logger."""
    package_logger: logging.Logger = logging.getLogger('ocifsync')
    saved_handlers: list[logging.Handler] = list(package_logger.handlers)
    saved_level: int = package_logger.level

    yield

    for handler in package_logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    package_logger.handlers[:] = saved_handlers
    package_logger.setLevel(saved_level)


@pytest.fixture
def sample_config() -> OcifSyncConfig:
    """Create a sample OcifSyncConfig for testing."""
    config_dict: dict[str, Any] = {
        'ocif': {
            'endpoint_url': 'https://test.example.com/ocif',
            'soap_action_prefix': 'urn:test:',
        },
        'client': {
            'request_timeout': [10, 30],
            'verify_ssl': True,
        },
        'templates': {
            'directory': str(BUNDLED_TEMPLATES),
            'encoding': 'utf8',
        },
        'logging': {
            'console_level': 'INFO',
        },
    }
    return OcifSyncConfig.model_validate(config_dict)


@pytest.fixture
def soap_template() -> str:
    """A minimal SOAP template with a header and one operation element."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" xmlns:ns="urn:test:ns">
    <soapenv:Header>
        <ns:RequestHeader>
            <ns:channel/>
        </ns:RequestHeader>
    </soapenv:Header>
    <soapenv:Body>
        <ns:DoThing>
            <ns:Id/>
            <ns:Items>
                <ns:Name/>
            </ns:Items>
        </ns:DoThing>
    </soapenv:Body>
</soapenv:Envelope>"""


@pytest.fixture
def templates_dir(tmp_path: Path, soap_template: str) -> Path:
    """Directory holding the minimal template as 'doThing.xml'."""
    (tmp_path / 'doThing.xml').write_text(soap_template, encoding='utf-8')
    return tmp_path


@pytest.fixture
def success_response() -> str:
    """A successful AmendInvolvedParty response."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/">
    <soapenv:Body>
        <ip:AmendInvolvedPartyResponse xmlns:ip="urn:ocif:involvedparty:v1">
            <ip:Status>OK</ip:Status>
        </ip:AmendInvolvedPartyResponse>
    </soapenv:Body>
</soapenv:Envelope>"""


def build_fault_xml(
    fault_code: str,
    detail_element: str = 'systemFault',
    reference: str | None = '12345',
    additional_text: str | None = None,
) -> str:
    """Build a SOAP Fault response for the given fault code."""
    parameter: str = (
        f'<parameter><key>TRANSACTION_REFERENCE</key><value>{reference}</value></parameter>'
        if reference is not None
        else ''
    )
    additional: str = (
        f'<additionalText>{additional_text}</additionalText>' if additional_text else ''
    )
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/">
    <soapenv:Body>
        <soapenv:Fault>
            <faultcode>{fault_code}</faultcode>
            <faultstring>Service failure</faultstring>
            <detail>
                <ns:{detail_element} xmlns:ns="urn:ocif:fault:v1">
                    <faultInfo>{parameter}{additional}</faultInfo>
                </ns:{detail_element}>
            </detail>
        </soapenv:Fault>
    </soapenv:Body>
</soapenv:Envelope>"""


@pytest.fixture
def fault_xml() -> Callable[..., str]:
    """Builder for SOAP Fault responses."""
    return build_fault_xml


@pytest.fixture
def mock_requests_response(success_response: str) -> Mock:
    """Create a mock requests.Response object."""
    response = Mock(spec=Response)
    response.status_code = 200
    response.text = success_response
    response.content = success_response.encode('utf-8')
    response.headers = {'Content-Type': 'text/xml'}
    return response


@pytest.fixture
def temp_config_file(tmp_path: Path, sample_config: OcifSyncConfig) -> Path:
    """Create a temporary config file for testing."""
    config_path: Path = tmp_path / 'config.yaml'

    # Dump the config using pydantic + yaml so types are preserved
    config_dict: dict[str, Any] = sample_config.model_dump(mode='json')

    config_path.write_text(
        yaml.safe_dump(
            config_dict,
            sort_keys=False,  # Keep a nice human order
        )
    )

    return config_path
