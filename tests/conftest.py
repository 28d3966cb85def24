from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Union

import pytest

import sfdash.config
import sfdash.session

LOGIN_URL = "https://login.salesforce.com/services/Soap/u/36.0"
SERVER_URL = "https://na1.salesforce.com/services/Soap/u/36.0/00D000000000001"


@dataclass
class RecordedCall:
    operation: str
    message: Dict[str, Any]
    endpoint: str
    headers: Dict[str, Any]


class FakeTransport:
    """Transport double: answers from FakeSoap.responses and records every call."""

    def __init__(self, soap: "FakeSoap", endpoint: str, soap_headers: Mapping[str, Any]):
        self.soap = soap
        self.endpoint = endpoint
        self.soap_headers = dict(soap_headers)

    def operations(self) -> List[str]:
        return sorted(self.soap.responses)

    def call(self, operation: str, message: Mapping[str, Any]) -> Dict[str, Any]:
        self.soap.calls.append(
            RecordedCall(operation, dict(message), self.endpoint, dict(self.soap_headers))
        )
        reply = self.soap.responses[operation]
        if callable(reply):
            reply = reply(dict(message))
        if isinstance(reply, Exception):
            raise reply
        return {f"{operation}Response": {"result": reply}}


class FakeSoap:
    """Canned SOAP results keyed by wire operation name (result node only)."""

    def __init__(self) -> None:
        self.responses: Dict[str, Union[Any, Callable[[Dict[str, Any]], Any]]] = {}
        self.calls: List[RecordedCall] = []
        self.transports: List[FakeTransport] = []

    def factory(self, endpoint: str, soap_headers: Mapping[str, Any]) -> FakeTransport:
        transport = FakeTransport(self, endpoint, soap_headers)
        self.transports.append(transport)
        return transport

    def calls_to(self, operation: str) -> List[RecordedCall]:
        return [c for c in self.calls if c.operation == operation]


@pytest.fixture
def soap() -> FakeSoap:
    return FakeSoap()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No SF_* variables, no .env files, fresh process-wide config and session mirror."""
    for name in list(os.environ):
        if name.startswith("SF_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    sfdash.config.reset_configuration()
    monkeypatch.setattr(sfdash.session, "current_session", None)
    yield
    sfdash.config.reset_configuration()


@pytest.fixture
def contact_describe() -> Dict[str, Any]:
    """describeSObject result for Contact, in wire tag names."""
    return {
        "@xsi:type": "DescribeSObjectResult",
        "name": "Contact",
        "fields": [
            {"name": "Id", "type": "id"},
            {"name": "LastName", "type": "string"},
            {"name": "Age__c", "type": "int"},
        ],
    }
