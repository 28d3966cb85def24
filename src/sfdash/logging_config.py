from __future__ import annotations

import logging
from typing import Optional

_DEFAULT_FMT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DEFAULT_DATEFMT = "%H:%M:%S"

_NOISY_LOGGERS = ("urllib3.connection", "zeep.wsdl", "zeep.xsd")


def configure_logging(level: Optional[int], *, log_soap: bool = False) -> None:
    """Configure root logging once; safe to call multiple times."""
    lvl = level if level is not None else logging.WARNING
    root = logging.getLogger()

    if root.handlers:
        # Logging already configured elsewhere – just adjust the level.
        root.setLevel(lvl)
    else:
        logging.basicConfig(
            level=lvl,
            format=_DEFAULT_FMT,
            datefmt=_DEFAULT_DATEFMT,
        )

    # WSDL parsing and urllib3 header warnings are noise for CLI users
    for name in _NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        if noisy.level == logging.NOTSET or noisy.level < logging.ERROR:
            noisy.setLevel(logging.ERROR)

    if log_soap:
        enable_soap_logging()


def enable_soap_logging() -> None:
    """Let zeep log every request/response envelope at DEBUG."""
    logging.getLogger("zeep.transports").setLevel(logging.DEBUG)
