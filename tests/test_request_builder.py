"""Tests for AmendInvolvedParty and GetInvolvedParty request mapping."""

import asyncio
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import pytest
from lxml import etree

from ocifsync.exceptions import XmlParseError
from ocifsync.payload_assembler import PayloadNamespaceAssembler
from ocifsync.request_builder import (
    amend_involved_party_cg_to_ocif,
    map_envelope,
    map_foreign_indicia_list,
    get_involved_party_cg_to_ocif,
    map_foreign_tax_trust_list,
    map_get_envelope,
    map_request_control,
    map_request_header,
)
from ocifsync.template_cache import TemplateCache
from ocifsync.utils import set_correlation_id

IP: str = '{urn:ocif:involvedparty:v1}'
HDR: str = '{urn:ocif:header:v1}'


@pytest.fixture
def indicia_record() -> dict[str, Any]:
    """A fully populated CG foreignIndicia record."""
    return {
        'action': 'ADD',
        'foreignTaxCountry': 'US',
        'sourceObjectRef': [
            {'objectRef': [{'refKeyUser': 'testUser', 'refKeyValue': 'identifierValue'}]}
        ],
        'lastMaintainedDate': '2023-10-30T12:34:56.789Z',
        'informationCollectedTimestamp': '2023-10-30T12:34:56.789Z',
        'transitNumber': '1234',
        'foreignTaxIdentifier': 'ID-123',
        'classificationScheme': 'Scheme1',
        'owningIprt': 'OwnIPRT',
        'informationCollectorId': 'CollectorID',
        'informationCollectorName': 'CollectorName',
    }


class TestMapForeignIndiciaList:
    """Tests for map_foreign_indicia_list."""

    def test_full_record(self, indicia_record: dict[str, Any]) -> None:
        """Test every mapped field, the record audit and the object identifier."""
        result = map_foreign_indicia_list({'foreignIndicia': [indicia_record]})

        assert result['IsForeignIndiciaList'] is True
        entry = result['foreignIndiciaData']['AmendForeignIndicia'][0]
        assert entry['Action'] == 'ADD'
        assert entry['ForeignIndicia'] == {
            'TransitNumber': '1234',
            'ForeignTaxCountry': 'US',
            'ForeignTaxIdentifier': 'ID-123',
            'ClassificationScheme': 'Scheme1',
            'OwningIPRT': 'OwnIPRT',
            'InformationCollectorID': 'CollectorID',
            'InformationCollectorName': 'CollectorName',
            'RecordAudit': {
                'LastMaintainedDate': '2023-10-30-12.34.56.789000',
                'LastMaintainedUser': {'userID': 'testUser'},
            },
            'ObjectIdentifier': 'identifierValue',
            'InformationCollectedTimestamp': '2023-10-30-12.34.56.789000',
        }

    @pytest.mark.parametrize('data', [{'foreignIndicia': []}, {'foreignIndicia': None}, {}])
    def test_empty_or_missing(self, data: dict[str, Any]) -> None:
        """Test the flag is false and the list empty when there is nothing to map."""
        result = map_foreign_indicia_list(data)

        assert result['IsForeignIndiciaList'] is False
        assert result['foreignIndiciaData']['AmendForeignIndicia'] == []

    def test_multiple_actions(self) -> None:
        """Test that every record is mapped in order."""
        data = {
            'foreignIndicia': [
                {'action': 'ADD', 'foreignTaxCountry': 'US'},
                {'action': 'DELETE', 'foreignTaxCountry': 'CA'},
            ]
        }
        entries = map_foreign_indicia_list(data)['foreignIndiciaData']['AmendForeignIndicia']

        assert [e['Action'] for e in entries] == ['ADD', 'DELETE']
        assert entries[1]['ForeignIndicia'] == {'ForeignTaxCountry': 'CA'}


class TestMapForeignTaxTrustList:
    """Tests for map_foreign_tax_trust_list."""

    def test_full_record(self) -> None:
        """Test every mapped trust field."""
        data = {
            'foreignTaxTrust': [
                {
                    'action': 'ADD',
                    'sourceObjectRef': [
                        {'objectRef': [{'refKeyUser': 'testUser', 'refKeyValue': 'identifierValue'}]}
                    ],
                    'lastMaintainedDate': '2023-10-30T12:34:56.789Z',
                    'trustAccountNumber': 'TRUST-123',
                    'systemIdentificationCode': 'SYS-456',
                    'preexistingProfile': True,
                    'preexistingProfileCrs': True,
                    'taxAccountClassCrs': 'ClassCrs',
                    'taxAccountClass': 'Class',
                    'taxEntityClass': 'EntityClass',
                    'indiciaCheckComplete': False,
                    'owningSldp': 'OwningSLDP',
                }
            ]
        }
        result = map_foreign_tax_trust_list(data)

        assert result['IsForeignTaxRole'] is True
        trust = result['foreignTaxTrustData']['AmendForeignTaxTrust'][0]['ForeignTaxTrust']
        assert trust['TrustAccountNumber'] == 'TRUST-123'
        assert trust['SystemIdentificationCode'] == 'SYS-456'
        assert trust['PreexistingProfile'] is True
        assert trust['PreexistingProfileCRS'] is True
        assert trust['TaxAccountClassCRS'] == 'ClassCrs'
        assert trust['TaxAccountClass'] == 'Class'
        assert trust['TaxEntityClass'] == 'EntityClass'
        assert trust['IndiciaCheckComplete'] is False
        assert trust['OwningSLDP'] == 'OwningSLDP'
        assert trust['RecordAudit']['LastMaintainedUser'] == {'userID': 'testUser'}
        assert trust['ObjectIdentifier'] == 'identifierValue'

    def test_empty(self) -> None:
        """Test the flag is false for an empty list."""
        assert map_foreign_tax_trust_list({'foreignTaxTrust': []})['IsForeignTaxRole'] is False

    def test_record_without_source_refs(self) -> None:
        """Test that missing references leave no audit user or identifier."""
        data = {'foreignTaxTrust': [{'action': 'DELETE', 'trustAccountNumber': '67890'}]}
        entry = map_foreign_tax_trust_list(data)['foreignTaxTrustData']['AmendForeignTaxTrust'][0]

        assert entry == {'Action': 'DELETE', 'ForeignTaxTrust': {'TrustAccountNumber': '67890'}}


class TestMapEnvelope:
    """Tests for map_envelope and map_request_header."""

    def test_header_only(self) -> None:
        """Test that a payload without party data has no Body."""
        set_correlation_id('corr-42')
        result = map_envelope({'originatorData': {'channel': 'Online'}})

        assert result['envelope']['Header']['RequestHeader'] == {
            'version': '1.0',
            'channel': 'Online',
            'correlationId': 'corr-42',
        }
        assert 'Body' not in result['envelope']

    def test_body_with_identifier(self) -> None:
        """Test the InvolvedPartyIdentifier mapping."""
        result = map_envelope({'identifier': {'id': '12345', 'type': 'CIF'}})

        assert result['envelope']['Body'] == {
            'InvolvedPartyIdentifier': {'IdentifierValue': '12345', 'IdentifierType': 'CIF'}
        }

    def test_body_with_lists(self) -> None:
        """Test that non-empty lists are added to the Body."""
        result = map_envelope(
            {
                'foreignIndicia': [{'action': 'ADD'}],
                'foreignTaxTrust': [{'action': 'DELETE'}],
            }
        )

        assert result['envelope']['Body'] == {
            'AmendForeignIndicia': [{'Action': 'ADD'}],
            'AmendForeignTaxTrust': [{'Action': 'DELETE'}],
        }

    def test_none_payload(self) -> None:
        """Test that a missing payload still yields a header."""
        assert list(map_envelope(None)['envelope']) == ['Header']

    def test_request_header_ignores_unknown_fields(self) -> None:
        """Test that only known originator fields are copied."""
        header = map_request_header({'channel': 'Web', 'appCatId': 'App1', 'secret': 'x'})

        assert 'secret' not in header
        assert header['appCatId'] == 'App1'


class TestAmendInvolvedPartyCgToOcif:
    """Tests for the full request build."""

    def test_builds_soap_envelope(self, indicia_record: dict[str, Any]) -> None:
        """Test the serialized envelope against the bundled template."""
        payload = {
            'originatorData': {'channel': 'Online', 'appCatId': 'App1'},
            'identifier': {'id': '12345'},
            'foreignIndicia': [indicia_record, {'action': 'DELETE', 'foreignTaxCountry': 'CA'}],
        }

        xml = asyncio.run(amend_involved_party_cg_to_ocif(payload))
        root = etree.fromstring(xml.encode('utf-8'))

        assert root.tag == '{http://schemas.xmlsoap.org/soap/envelope/}Envelope'
        assert root.findtext(f'.//{HDR}RequestHeader/{HDR}channel') == 'Online'

        request = root.find(f'.//{IP}AmendInvolvedPartyRequest')
        assert request is not None
        assert request.findtext(f'{IP}InvolvedPartyIdentifier/{IP}IdentifierValue') == '12345'

        indicia = request.findall(f'{IP}AmendForeignIndicia')
        assert [e.findtext(f'{IP}Action') for e in indicia] == ['ADD', 'DELETE']
        first = indicia[0].find(f'{IP}ForeignIndicia')
        assert first is not None
        assert first.findtext(f'{IP}RecordAudit/{IP}LastMaintainedDate') == '2023-10-30-12.34.56.789000'
        assert first.findtext(f'{IP}RecordAudit/{IP}LastMaintainedUser/{IP}userID') == 'testUser'
        # Elements follow template order, not payload order
        assert [etree.QName(e).localname for e in first][:2] == ['TransitNumber', 'ForeignTaxCountry']

    def test_header_only_payload(self) -> None:
        """Test that a payload without party data yields an empty operation element."""
        xml = asyncio.run(amend_involved_party_cg_to_ocif({'originatorData': {'channel': 'Web'}}))
        root = etree.fromstring(xml.encode('utf-8'))

        request = root.find(f'.//{IP}AmendInvolvedPartyRequest')
        assert request is not None
        assert len(request) == 0

    def test_custom_assembler(self, templates_dir: Path) -> None:
        """Test building against another template through an injected assembler."""
        assembler = PayloadNamespaceAssembler(TemplateCache(templates_dir))

        xml = asyncio.run(
            amend_involved_party_cg_to_ocif(
                {'originatorData': {'channel': 'Web'}},
                assembler,
                template_name='doThing.xml',
            )
        )
        root = etree.fromstring(xml.encode('utf-8'))

        assert root.findtext('.//{urn:test:ns}RequestHeader/{urn:test:ns}channel') == 'Web'
        assert root.find('.//{urn:test:ns}DoThing') is not None

    @patch('ocifsync.request_builder.log_error')
    @patch('ocifsync.request_builder.map_envelope')
    def test_mapping_failure_is_logged_and_reraised(
        self, mock_map: Mock, mock_log_error: Mock
    ) -> None:
        """Test that a mapping failure is logged once and re-raised unchanged."""
        failure = RuntimeError('Simulated Error')
        mock_map.side_effect = failure

        with pytest.raises(RuntimeError) as exc_info:
            asyncio.run(amend_involved_party_cg_to_ocif({'identifier': {'id': '12345'}}))

        assert exc_info.value is failure
        mock_log_error.assert_called_once_with('error mapping amendInvolvedParty request', failure)

    @patch('ocifsync.request_builder.log_error')
    def test_template_failure_is_reraised(self, mock_log_error: Mock) -> None:
        """Test that a broken template surfaces as XmlParseError."""
        assembler = PayloadNamespaceAssembler(
            TemplateCache(reader=AsyncMock(return_value='<broken'))
        )

        with pytest.raises(XmlParseError):
            asyncio.run(amend_involved_party_cg_to_ocif({'identifier': {'id': '1'}}, assembler))

        mock_log_error.assert_called_once()


class TestMapGetEnvelope:
    """Tests for GetInvolvedParty envelope mapping."""

    def test_request_control_keeps_only_booleans(self) -> None:
        """Test flag mapping onto OCIF RequestControl names."""
        control = map_request_control(
            {
                'requestForeignTaxEntity': True,
                'requestForeignSupportDocumentsList': False,
                'requestForeignIndicia': 'yes',
                'identifier': {'id': '1'},
            }
        )

        assert control == {'ForeignTaxEntity': True, 'ForeignSupportDocument': False}

    def test_identifier_and_control(self) -> None:
        """Test the body of a GetInvolvedParty envelope."""
        envelope = map_get_envelope(
            {
                'originatorData': {'channel': 'Online'},
                'identifier': {'id': '12345', 'type': 'CIF'},
                'requestForeignTaxCountryList': True,
            }
        )['envelope']

        assert envelope['Header']['RequestHeader']['channel'] == 'Online'
        assert envelope['Body'] == {
            'InvolvedPartyIdentifier': {'IdentifierValue': '12345', 'IdentifierType': 'CIF'},
            'RequestControl': {'ForeignTaxCountry': True},
        }

    def test_none_payload(self) -> None:
        """Test that a missing payload still yields a header and an empty body."""
        envelope = map_get_envelope(None)['envelope']

        assert envelope['Body'] == {}
        assert envelope['Header']['RequestHeader']['version'] == '1.0'


class TestGetInvolvedPartyCgToOcif:
    """Tests for the full GetInvolvedParty request build."""

    def test_builds_soap_envelope(self) -> None:
        """Test the serialized envelope against the bundled template."""
        payload = {
            'identifier': {'id': '12345'},
            'requestForeignIndicia': True,
            'requestForeignTaxEntity': False,
        }

        xml = asyncio.run(get_involved_party_cg_to_ocif(payload))
        root = etree.fromstring(xml.encode('utf-8'))

        request = root.find(f'.//{IP}GetInvolvedPartyRequest')
        assert request is not None
        assert request.findtext(f'{IP}InvolvedPartyIdentifier/{IP}IdentifierValue') == '12345'
        control = request.find(f'{IP}RequestControl')
        assert control is not None
        # Template order, not payload order
        assert [(etree.QName(e).localname, e.text) for e in control] == [
            ('ForeignTaxEntity', 'false'),
            ('ForeignIndicia', 'true'),
        ]

    @patch('ocifsync.request_builder.log_error')
    @patch('ocifsync.request_builder.map_get_envelope')
    def test_mapping_failure_is_logged_and_reraised(
        self, mock_map: Mock, mock_log_error: Mock
    ) -> None:
        """Test the GetInvolvedParty failure tag."""
        failure = RuntimeError('Simulated Error')
        mock_map.side_effect = failure

        with pytest.raises(RuntimeError) as exc_info:
            asyncio.run(get_involved_party_cg_to_ocif({'identifier': {'id': '1'}}))

        assert exc_info.value is failure
        mock_log_error.assert_called_once_with('error mapping getInvolvedParty request', failure)
