"""Typed wrappers for decoded SOAP results and the classifier producing them."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .exceptions import ApiError
from .tags import KeyNormalizer

RECORD_TYPE_MARKER = "sObject"
QUERY_RESULT_TYPE_MARKER = "QueryResult"


class SObject(dict):
    """A single record: field name -> value, tagged with its sObject type."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, *, normalizer: Optional[KeyNormalizer] = None):
        super().__init__(data or {})
        self._normalizer = normalizer or KeyNormalizer()

    @property
    def type(self) -> Optional[str]:
        # <sf:type> leads the record; a field named Type lands after it.
        return _first(self.get(self._normalizer.key_name("type")))

    @property
    def id(self) -> Optional[str]:
        # The Partner API repeats <Id> on records, which decodes to a list.
        return _first(self.get(self._normalizer.key_name("Id")))

    def __repr__(self) -> str:
        return f"SObject({self.type!r}, {dict.__repr__(self)})"


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


class QueryResult(list):
    """Records of a query page plus the paging state (``done``, ``size``, ``query_locator``)."""

    def __init__(
        self,
        records: Iterable[SObject] = (),
        *,
        done: bool = True,
        size: int = 0,
        query_locator: Optional[str] = None,
    ):
        super().__init__(records)
        self.done = done
        self.size = size
        self.query_locator = query_locator

    @property
    def records(self) -> List[SObject]:
        return list(self)

    def first(self) -> Optional[SObject]:
        return self[0] if self else None

    @classmethod
    def from_node(cls, node: Dict[str, Any], normalizer: KeyNormalizer) -> QueryResult:
        key = normalizer.key_name
        raw_records = node.get(key("records"))
        if raw_records is None:
            raw_records = []
        elif isinstance(raw_records, dict):
            raw_records = [raw_records]

        size = node.get(key("size"))
        done = node.get(key("done"), True)
        return cls(
            (SObject(r, normalizer=normalizer) for r in raw_records),
            done=_as_bool(done),
            size=int(size) if size is not None else len(raw_records),
            query_locator=node.get(key("queryLocator")),
        )

    def __repr__(self) -> str:
        return (
            f"QueryResult(size={self.size}, done={self.done}, "
            f"query_locator={self.query_locator!r}, records={list.__repr__(self)})"
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


class ResponseClassifier:
    """Turns the ``result`` node of a response into a plain value, SObject or QueryResult.

    Classification looks only at the node itself: a failure flag with errors
    raises ``ApiError``, otherwise the inline ``xsi:type`` decides.
    """

    def __init__(self, normalizer: KeyNormalizer) -> None:
        self.normalizer = normalizer

    def classify(self, result: Any) -> Any:
        if not isinstance(result, dict):
            return result

        key = self.normalizer.key_name
        errors = result.get(key("errors"))
        success = result.get(key("success"))
        if success is not None and not _as_bool(success) and errors:
            raise self._api_error(errors)

        xsi_type = str(result.get(key("@xsi:type")) or "")
        if RECORD_TYPE_MARKER in xsi_type:
            return SObject(result, normalizer=self.normalizer)
        if QUERY_RESULT_TYPE_MARKER in xsi_type:
            return QueryResult.from_node(result, self.normalizer)
        return result

    def _api_error(self, errors: Any) -> ApiError:
        key = self.normalizer.key_name
        if isinstance(errors, list):
            errors = errors[0]
        return ApiError(str(errors.get(key("statusCode"))), str(errors.get(key("message"))))
