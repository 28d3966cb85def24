from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .results import ResponseClassifier
from .tags import KeyNormalizer, wire_operation
from .transport import SoapTransport

_logger = logging.getLogger(__name__)


class SoapDispatcher:
    """Generic call path shared by every operation.

    Invokes the transport, converts the decoded tree to the active tag
    style, digs out ``<operation>Response`` / ``result`` and classifies it.
    Transport exceptions propagate untouched.
    """

    def __init__(self, transport: SoapTransport, normalizer: KeyNormalizer) -> None:
        self.transport = transport
        self.normalizer = normalizer
        self.classifier = ResponseClassifier(normalizer)

    def call(self, operation: str, message: Optional[Mapping[str, Any]] = None) -> Any:
        wire_name = wire_operation(operation)
        _logger.debug("SOAP call %s", wire_name)

        response = self.normalizer.convert(self.transport.call(wire_name, dict(message or {})))

        body = response.get(self.normalizer.key_name(f"{operation}Response"))
        if not isinstance(body, dict):
            return None
        return self.classifier.classify(body.get(self.normalizer.key_name("result")))
