from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .env_loader import load_env_files

DEFAULT_WSDL = str(Path(__file__).parent / "resources" / "partner.wsdl.xml")
DEFAULT_VERSION = "36.0"
DEFAULT_HOST = "login.salesforce.com"


# ----------------------------------------------------------------------
# Configuration dataclass
# ----------------------------------------------------------------------
@dataclass
class ClientConfig:
    """Construction options for ``sfdash.Client``."""

    wsdl: str = DEFAULT_WSDL

    # Adds a CallOptions header to every request (ISV partner client id)
    client_id: Optional[str] = None

    version: str = DEFAULT_VERSION
    host: str = DEFAULT_HOST

    # Derived from host + version when not set
    login_url: Optional[str] = None

    # "normalized" (snake_case keys) or "raw" (wire tag names)
    tag_style: str = "normalized"

    tls_version: str = "TLSv1_2"
    open_timeout: Optional[float] = None
    read_timeout: Optional[float] = None
    proxy: Optional[str] = None

    # Log SOAP envelopes through the zeep.transports logger
    log_soap: bool = False

    # Compatibility shim: publish the session to sfdash.session.current_session
    mirror_session: bool = False

    @property
    def resolved_login_url(self) -> str:
        return self.login_url or f"https://{self.host}/services/Soap/u/{self.version}"

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Load configuration from environment variables (and .env files)."""
        load_env_files(quiet=True)
        return cls(
            wsdl=os.getenv("SF_WSDL", DEFAULT_WSDL),
            client_id=os.getenv("SF_CLIENT_ID"),
            version=os.getenv("SF_API_VERSION", DEFAULT_VERSION),
            host=os.getenv("SF_HOST", DEFAULT_HOST),
            login_url=os.getenv("SF_LOGIN_URL"),
            tag_style=os.getenv("SF_TAG_STYLE", "normalized"),
            tls_version=os.getenv("SF_TLS_VERSION", "TLSv1_2"),
            proxy=os.getenv("SF_PROXY"),
        )

    def replace(self, **overrides: Any) -> ClientConfig:
        return dataclasses.replace(self, **overrides)


# ----------------------------------------------------------------------
# Process-wide defaults
# ----------------------------------------------------------------------
_configuration: Optional[ClientConfig] = None


def configuration() -> ClientConfig:
    """Return the process-wide default configuration, loading it from env on first use."""
    global _configuration
    if _configuration is None:
        _configuration = ClientConfig.from_env()
    return _configuration


def configure(**options: Any) -> ClientConfig:
    """Update the process-wide defaults used by clients built without an explicit config."""
    global _configuration
    _configuration = configuration().replace(**options)
    return _configuration


def reset_configuration() -> None:
    global _configuration
    _configuration = None
