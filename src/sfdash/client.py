from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from .config import ClientConfig, configuration
from .describe_cache import DescribeCache
from .dispatcher import SoapDispatcher
from .logging_config import enable_soap_logging
from .results import QueryResult, SObject
from .session import Session, SessionManager
from .soql import build_where, find_by_field_soql, select_soql
from .tags import KeyNormalizer, TagStyle
from .transport import SoapTransport, TransportFactory, ZeepTransport

_logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Main API client
# ----------------------------------------------------------------------
class Client:
    """Salesforce Partner SOAP API client returning plain dicts and typed results.

    Examples
    --------
    >>> client = Client(client_id="MyPartnerApp")
    >>> client.login(username="me@example.com", password="secret+token")
    >>> client.find("Account", "001000000000001")
    >>> client.find_where("Contact", {"LastName": "Smith"}, ["Id", "Email"])

    Any WSDL operation without a dedicated method is reachable through
    ``client.call("operationName", {...})``.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport_factory: Optional[TransportFactory] = None,
        **options: Any,
    ) -> None:
        cfg = config or configuration()
        self.cfg = cfg.replace(**options) if options else cfg
        self.normalizer = KeyNormalizer(self.cfg.tag_style)

        if self.cfg.log_soap:
            enable_soap_logging()

        # CallOptions lets ISV partners call into Professional/Group Edition orgs.
        headers: Dict[str, Any] = {}
        if self.cfg.client_id:
            headers["CallOptions"] = {"client": self.cfg.client_id}

        self.transport_factory = transport_factory or ZeepTransport.factory(
            self.cfg.wsdl,
            tls_version=self.cfg.tls_version,
            proxy=self.cfg.proxy,
            open_timeout=self.cfg.open_timeout,
            read_timeout=self.cfg.read_timeout,
        )
        self.dispatcher = SoapDispatcher(
            self.transport_factory(self.cfg.resolved_login_url, headers), self.normalizer
        )
        self.sessions = SessionManager(
            self.dispatcher,
            self.transport_factory,
            base_headers=headers,
            mirror_session=self.cfg.mirror_session,
        )
        self.describe_cache = DescribeCache(self._describe_remote, self._describe_layout_remote)
        _logger.debug(
            "Client ready: login_url=%s tag_style=%s", self.cfg.resolved_login_url, self.tag_style.value
        )

    # --------------------------- Properties ---------------------------

    @property
    def tag_style(self) -> TagStyle:
        return self.normalizer.style

    @property
    def headers(self) -> Dict[str, Any]:
        return dict(self.sessions.headers)

    @property
    def session(self) -> Optional[Session]:
        return self.sessions.session

    @property
    def transport(self) -> SoapTransport:
        return self.dispatcher.transport

    def key_name(self, key: str) -> str:
        return self.normalizer.key_name(key)

    # --------------------------- Session ------------------------------

    def operations(self) -> List[str]:
        """Names of all operations the WSDL defines."""
        return self.transport.operations()

    def login(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        *,
        session_id: Optional[str] = None,
        server_url: Optional[str] = None,
    ) -> Any:
        """Log in with username/password (password + security token) or session_id/server_url.

        Returns the login result, or the user info when an existing session
        was adopted.
        """
        return self.sessions.login(
            username=username,
            password=password,
            session_id=session_id,
            server_url=server_url,
            confirm=self.get_user_info,
        )

    authenticate = login

    # --------------------------- Generic call -------------------------

    def call(self, operation: str, message: Optional[Mapping[str, Any]] = None) -> Any:
        """Invoke any WSDL operation (``describeGlobal`` or ``describe_global``)."""
        return self.dispatcher.call(operation, message)

    def describe_global(self) -> Any:
        return self.call("describeGlobal")

    def describe_softphone_layout(self) -> Any:
        return self.call("describeSoftphoneLayout")

    def describe_tabs(self) -> Any:
        return self.call("describeTabs")

    def get_server_timestamp(self) -> Any:
        return self.call("getServerTimestamp")

    def get_user_info(self) -> Any:
        return self.call("getUserInfo")

    def logout(self) -> Any:
        return self.call("logout")

    # --------------------------- Discovery ----------------------------

    def list_sobjects(self) -> List[str]:
        """Names of all sObjects in the org, e.g. ``['Account', 'Lead', ...]``."""
        response = self.describe_global()
        sobjects = response[self.key_name("sobjects")]
        if isinstance(sobjects, dict):
            sobjects = [sobjects]
        return [s[self.key_name("name")] for s in sobjects]

    def org_id(self) -> Optional[str]:
        """Id of the current organization."""
        result = self.query("SELECT Id FROM Organization")
        record = result.first() if isinstance(result, QueryResult) else None
        return record.id if record else None

    def describe(self, sobject_type: Union[str, Sequence[str]]) -> Any:
        """Describe one sObject (cached) or several (uncached describeSObjects)."""
        if isinstance(sobject_type, (list, tuple)):
            return self.call("describeSObjects", {"sObjectType": list(sobject_type)})
        return self.describe_cache.describe(sobject_type)

    def describe_layout(self, sobject_type: str, layout_id: Optional[str] = None) -> Any:
        """Layouts of an sObject; ``layout_id`` narrows to one record type. Cached."""
        return self.describe_cache.describe_layout(sobject_type, layout_id)

    def _describe_remote(self, sobject_type: str) -> Any:
        return self.call("describeSObject", {"sObjectType": sobject_type})

    def _describe_layout_remote(self, sobject_type: str, layout_id: Optional[str]) -> Any:
        return self.call("describeLayout", {"sObjectType": sobject_type, "recordTypeIds": layout_id})

    def field_list(self, sobject: str) -> List[str]:
        name_key = self.key_name("name")
        return [f[name_key] for f in self._fields(sobject)]

    def field_details(self, sobject: str, field_name: str) -> Optional[Dict[str, Any]]:
        """Describe entry of one field, matched case-insensitively."""
        name_key = self.key_name("name")
        wanted = field_name.lower()
        return next((f for f in self._fields(sobject) if f[name_key].lower() == wanted), None)

    def _fields(self, sobject: str) -> List[Dict[str, Any]]:
        fields = self.describe(sobject)[self.key_name("fields")]
        return [fields] if isinstance(fields, dict) else fields

    # --------------------------- Queries ------------------------------

    def query(self, soql: str) -> Any:
        return self.call("query", {"queryString": soql})

    def query_all(self, soql: str) -> Any:
        """Like query() but includes deleted and archived records."""
        return self.call("queryAll", {"queryString": soql})

    def query_more(self, locator: str) -> Any:
        return self.call("queryMore", {"queryLocator": locator})

    def search(self, sosl: str) -> Any:
        return self.call("search", {"searchString": sosl})

    def query_all_iter(self, soql: str, *, include_deleted: bool = False) -> Iterator[SObject]:
        """Yield records across pages by following the query locator."""
        page = self.query_all(soql) if include_deleted else self.query(soql)
        while isinstance(page, QueryResult):
            yield from page
            if page.done or not page.query_locator:
                return
            page = self.query_more(page.query_locator)

    # --------------------------- Finders ------------------------------

    def find(self, sobject: str, id: str, field: Optional[str] = None) -> Any:
        """Single record with all fields; ``field`` names an external id field."""
        if field is None or field.lower() == "id":
            return self.retrieve(sobject, id)
        return self.find_by_field(sobject, id, field)

    def find_where(
        self,
        sobject: str,
        where: Union[str, Mapping[str, Any], None] = None,
        select_fields: Optional[Iterable[str]] = None,
    ) -> Any:
        """Records matching a where clause (string) or field -> value mapping."""
        field_names = list(select_fields or []) or self.field_list(sobject)
        return self.query(select_soql(sobject, field_names, build_where(where or {})))

    def find_by_field(self, sobject: str, id: Any, field_name: str) -> Optional[SObject]:
        """First record whose ``field_name`` equals ``id``, or None."""
        details = self.field_details(sobject, field_name) or {}
        soql = find_by_field_soql(
            sobject, self.field_list(sobject), field_name, id, details.get(self.key_name("type"))
        )
        result = self.query(soql)
        return result.first() if isinstance(result, QueryResult) else None

    def retrieve(self, sobject: str, id: Union[str, Sequence[str]]) -> Any:
        ids = list(id) if isinstance(id, (list, tuple)) else [id]
        return self.call(
            "retrieve",
            {"fieldList": ",".join(self.field_list(sobject)), "sObjectType": sobject, "ids": ids},
        )

    # --------------------------- DML ----------------------------------

    @staticmethod
    def sobjects_payload(
        sobject_type: str, records: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]
    ) -> Dict[str, List[Dict[str, Any]]]:
        """``{"sObjects": [...]}`` with every record tagged with its type."""
        if isinstance(records, Mapping):
            records = [records]
        return {"sObjects": [{"type": sobject_type, **r} for r in records]}

    def create(self, sobject_type: str, records: Any) -> Any:
        return self.call("create", self.sobjects_payload(sobject_type, records))

    def update(self, sobject_type: str, records: Any) -> Any:
        return self.call("update", self.sobjects_payload(sobject_type, records))

    def upsert(self, sobject_type: str, external_id_field: str, records: Any) -> Any:
        message = {"externalIDFieldName": external_id_field}
        message.update(self.sobjects_payload(sobject_type, records))
        return self.call("upsert", message)

    def delete(self, ids: Union[str, Sequence[str]]) -> Any:
        return self.call("delete", {"ids": list(ids) if isinstance(ids, (list, tuple)) else [ids]})
