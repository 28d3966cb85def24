"""SOAP transport backed by zeep.

The client only needs two things from a transport: the list of operation
names, and ``call(operation, message)`` returning the decoded response
body as nested dicts keyed by wire tag names. ``ZeepTransport`` provides
that on top of a zeep client: zeep serializes the request from the WSDL,
the raw reply is decoded here with lxml so that inline ``xsi:type``
attributes survive into the tree.
"""

from __future__ import annotations

import logging
import ssl
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

import requests
from lxml import etree
from requests.adapters import HTTPAdapter
from zeep import Client as ZeepClient
from zeep import Settings
from zeep.exceptions import Fault, TransportError
from zeep.transports import Transport

from .tags import merge_key

_logger = logging.getLogger(__name__)

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
PARTNER_NS = "urn:partner.soap.sforce.com"
SOBJECT_NS = "urn:sobject.partner.soap.sforce.com"

_PARSER = etree.XMLParser(huge_tree=True, resolve_entities=False, remove_blank_text=True)


class SoapTransport(Protocol):
    def operations(self) -> List[str]: ...

    def call(self, operation: str, message: Mapping[str, Any]) -> Dict[str, Any]: ...


TransportFactory = Callable[[str, Mapping[str, Any]], SoapTransport]


# ----------------------------------------------------------------------
# TLS
# ----------------------------------------------------------------------
def _tls_version(name: str) -> ssl.TLSVersion:
    return ssl.TLSVersion[name.replace(".", "_")]


class TLSAdapter(HTTPAdapter):
    """HTTPAdapter refusing anything older than ``tls_version``."""

    def __init__(self, tls_version: str = "TLSv1_2", **kwargs: Any) -> None:
        self.ssl_context = ssl.create_default_context()
        self.ssl_context.minimum_version = _tls_version(tls_version)
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["ssl_context"] = self.ssl_context
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, proxy: str, **proxy_kwargs: Any) -> Any:
        proxy_kwargs["ssl_context"] = self.ssl_context
        return super().proxy_manager_for(proxy, **proxy_kwargs)


def build_session(
    *, tls_version: str = "TLSv1_2", proxy: Optional[str] = None
) -> requests.Session:
    session = requests.Session()
    session.mount("https://", TLSAdapter(tls_version))
    if proxy:
        session.proxies = {"http": proxy, "https": proxy}
    return session


# ----------------------------------------------------------------------
# Response decoding
# ----------------------------------------------------------------------
def _typecast(text: Optional[str]) -> Any:
    if text is None or text == "":
        return None
    if text == "true":
        return True
    if text == "false":
        return False
    return text


def _attribute_key(element: etree._Element, name: str) -> str:
    qname = etree.QName(name)
    if qname.namespace is None:
        return f"@{qname.localname}"
    if qname.namespace == XSI_NS:
        return f"@xsi:{qname.localname}"
    prefix = next((p for p, uri in element.nsmap.items() if uri == qname.namespace and p), None)
    return f"@{prefix}:{qname.localname}" if prefix else f"@{qname.localname}"


def element_to_tree(element: etree._Element) -> Any:
    """Decode one element: children -> dict, repeated children -> list, leaf -> text."""
    attrs: Dict[str, Any] = {}
    for name, value in element.attrib.items():
        if name == f"{{{XSI_NS}}}nil":
            if value == "true":
                return None
            continue
        attrs[_attribute_key(element, name)] = value

    children = list(element.iterchildren(tag=etree.Element))
    if not children:
        value = _typecast(element.text)
        if value is None and attrs:
            return attrs
        return value

    tree = attrs
    for child in children:
        merge_key(tree, etree.QName(child).localname, element_to_tree(child))
    return tree


def decode_envelope(content: bytes) -> Dict[str, Any]:
    """Decode a SOAP envelope into ``{"<operation>Response": {...}}``; faults raise."""
    root = etree.fromstring(content, parser=_PARSER)
    body = root.find(f"{{{SOAP_ENV_NS}}}Body")
    if body is None:
        raise TransportError("SOAP response has no Body element", content=content)

    fault = body.find(f"{{{SOAP_ENV_NS}}}Fault")
    if fault is not None:
        raise Fault(
            fault.findtext("faultstring") or "Unknown fault",
            code=fault.findtext("faultcode"),
            detail=fault.find("detail"),
        )

    tree: Dict[str, Any] = {}
    for child in body.iterchildren(tag=etree.Element):
        merge_key(tree, etree.QName(child).localname, element_to_tree(child))
    return tree


# ----------------------------------------------------------------------
# Request encoding helpers
# ----------------------------------------------------------------------
def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_element(namespace: str, name: str, value: Any) -> etree._Element:
    element = etree.Element(etree.QName(namespace, name))
    if isinstance(value, Mapping):
        for key, child in value.items():
            element.append(build_element(namespace, key, child))
    elif value is not None:
        element.text = _text(value)
    return element


def header_elements(soap_headers: Mapping[str, Any]) -> List[etree._Element]:
    return [build_element(PARTNER_NS, name, value) for name, value in soap_headers.items()]


def sobject_value(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Partner sObject value: typed ``type``/``Id``/``fieldsToNull`` plus free-form fields."""
    fields = dict(record)
    value: Dict[str, Any] = {"type": fields.pop("type")}
    if "fieldsToNull" in fields:
        value["fieldsToNull"] = fields.pop("fieldsToNull")
    if "Id" in fields:
        value["Id"] = fields.pop("Id")
    value["_value_1"] = [build_element(SOBJECT_NS, k, v) for k, v in fields.items()]
    return value


# ----------------------------------------------------------------------
# Transport
# ----------------------------------------------------------------------
class ZeepTransport:
    """One zeep service bound to an endpoint with a fixed set of SOAP headers."""

    def __init__(
        self,
        client: ZeepClient,
        *,
        endpoint: Optional[str] = None,
        soap_headers: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.client = client
        self.endpoint = endpoint
        self.soap_headers = dict(soap_headers or {})
        self._binding_name = next(iter(client.wsdl.bindings))
        if endpoint:
            self.service = client.create_service(self._binding_name, endpoint)
        else:
            self.service = client.service

    @staticmethod
    def load_client(
        wsdl: str,
        *,
        session: Optional[requests.Session] = None,
        open_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
    ) -> ZeepClient:
        operation_timeout = None
        if open_timeout is not None or read_timeout is not None:
            # requests reads a tuple as (connect, read)
            operation_timeout = (open_timeout, read_timeout)
        transport = Transport(
            session=session or build_session(),
            timeout=open_timeout if open_timeout is not None else 300,
            operation_timeout=operation_timeout,
        )
        # raw_response: we decode the envelope ourselves to keep xsi:type
        settings = Settings(strict=False, raw_response=True, xml_huge_tree=True)
        _logger.debug("Loading WSDL from %s", wsdl)
        return ZeepClient(wsdl, transport=transport, settings=settings)

    @classmethod
    def factory(
        cls,
        wsdl: str,
        *,
        tls_version: str = "TLSv1_2",
        proxy: Optional[str] = None,
        open_timeout: Optional[float] = None,
        read_timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> TransportFactory:
        """Return ``(endpoint, soap_headers) -> ZeepTransport``; the WSDL is parsed once."""
        cache: Dict[str, ZeepClient] = {}

        def build(endpoint: str, soap_headers: Mapping[str, Any]) -> ZeepTransport:
            if "client" not in cache:
                cache["client"] = cls.load_client(
                    wsdl,
                    session=session or build_session(tls_version=tls_version, proxy=proxy),
                    open_timeout=open_timeout,
                    read_timeout=read_timeout,
                )
            return cls(cache["client"], endpoint=endpoint, soap_headers=soap_headers)

        return build

    def operations(self) -> List[str]:
        return sorted(self.client.wsdl.bindings[self._binding_name].all())

    def call(self, operation: str, message: Mapping[str, Any]) -> Dict[str, Any]:
        payload = dict(message or {})
        if "sObjects" in payload:
            payload["sObjects"] = [sobject_value(r) for r in payload["sObjects"]]

        response = self.service[operation](
            **payload, _soapheaders=header_elements(self.soap_headers)
        )
        content = response.content
        # Faults arrive as HTTP 500 with an envelope; decode_envelope raises those.
        if response.status_code >= 400 and b"Fault" not in content:
            raise TransportError(
                f"HTTP {response.status_code} from {self.endpoint}",
                status_code=response.status_code,
                content=content,
            )
        return decode_envelope(content)
