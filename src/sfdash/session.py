"""Login handshake and session header management."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .dispatcher import SoapDispatcher
from .exceptions import MissingCredentialsError
from .tags import KeyNormalizer
from .transport import TransportFactory

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    session_id: str
    server_url: str

    def header(self) -> Dict[str, Dict[str, str]]:
        return {"SessionHeader": {"sessionId": self.session_id}}

    def __repr__(self) -> str:
        return f"Session(session_id='{_mask(self.session_id)}', server_url={self.server_url!r})"


def _mask(token: str) -> str:
    return f"{token[:6]}..." if token else ""


# Legacy mirror of the last username/password session; only written when a
# client is built with mirror_session=True.
current_session: Optional[Session] = None


def _publish(session: Session) -> None:
    global current_session
    current_session = session


class SessionManager:
    """Authenticates and re-points the dispatcher at the session's server url.

    ``base_headers`` (e.g. CallOptions) are kept on every transport; the
    session header is added after login.
    """

    def __init__(
        self,
        dispatcher: SoapDispatcher,
        transport_factory: TransportFactory,
        *,
        base_headers: Optional[Mapping[str, Any]] = None,
        mirror_session: bool = False,
    ) -> None:
        self.dispatcher = dispatcher
        self.transport_factory = transport_factory
        self.headers: Dict[str, Any] = dict(base_headers or {})
        self.mirror_session = mirror_session
        self.session: Optional[Session] = None
        self._lock = threading.Lock()

    @property
    def normalizer(self) -> KeyNormalizer:
        return self.dispatcher.normalizer

    def login(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        session_id: Optional[str] = None,
        server_url: Optional[str] = None,
        confirm: Optional[Callable[[], Any]] = None,
    ) -> Any:
        """Log in with username/password, or adopt an existing session_id/server_url.

        Returns the login result for username/password; for an adopted
        session, whatever ``confirm`` (default: getUserInfo) returns.
        """
        with self._lock:
            if username and password:
                return self._password_login(username, password)
            if not (session_id and server_url):
                raise MissingCredentialsError()
            _logger.info("Adopting existing session for %s", server_url)
            self._activate(Session(session_id, server_url))

        # No remote call was made yet; confirm the session is usable.
        return confirm() if confirm else self.dispatcher.call("getUserInfo")

    def _password_login(self, username: str, password: str) -> Any:
        _logger.info("Logging in as %s", username)
        result = self.dispatcher.call("login", {"username": username, "password": password})
        key = self.normalizer.key_name
        session = Session(result[key("sessionId")], result[key("serverUrl")])
        self._activate(session)
        if self.mirror_session:
            _publish(session)
        return result

    def _activate(self, session: Session) -> None:
        self.session = session
        self.headers = {**self.headers, **session.header()}
        self.dispatcher.transport = self.transport_factory(session.server_url, self.headers)
        _logger.debug("Session %r active; endpoint switched to %s", session, session.server_url)
