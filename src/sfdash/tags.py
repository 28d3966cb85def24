"""Response tag styles.

SOAP responses are decoded into nested dicts keyed by the wire tag names
(``sessionId``, ``describeSObjectResponse``, ``@xsi:type``...). A client
either keeps those names (``raw``) or converts every key to snake_case
(``normalized``) once, right after decoding. ``KeyNormalizer.key_name``
maps the fixed envelope names the library itself looks up into whichever
style is active.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, Union

_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD = re.compile(r"([a-z\d])([A-Z])")
_UNDERSCORE = re.compile(r"_(\w)")


class TagStyle(str, Enum):
    NORMALIZED = "normalized"
    RAW = "raw"

    @classmethod
    def parse(cls, value: Union[str, TagStyle, None]) -> TagStyle:
        if value is None:
            return cls.NORMALIZED
        if isinstance(value, cls):
            return value
        if str(value).lower() in ("snakecase", "snake_case"):
            return cls.NORMALIZED
        return cls(str(value).lower())


def merge_key(tree: Dict[str, Any], key: str, value: Any) -> None:
    """Store ``value`` under ``key``; a key seen twice collects its values in a list."""
    if key not in tree:
        tree[key] = value
    elif isinstance(tree[key], list):
        tree[key].append(value)
    else:
        tree[key] = [tree[key], value]


def snakecase(key: str) -> str:
    """``describeSObjectResponse`` -> ``describe_s_object_response``."""
    s = key.replace("::", "/")
    s = _ACRONYM.sub(r"\1_\2", s)
    s = _WORD.sub(r"\1_\2", s)
    return s.replace(".", "_").replace("-", "_").lower()


def lower_camelcase(key: str) -> str:
    """``status_code`` -> ``statusCode``; keys without underscores are returned as-is."""
    if "_" not in key:
        return key
    return _UNDERSCORE.sub(lambda m: m.group(1).upper(), key)


def wire_operation(operation: str) -> str:
    """Operation name as the WSDL spells it (``get_user_info`` -> ``getUserInfo``)."""
    return lower_camelcase(operation)


class KeyNormalizer:
    """Converts response keys to the configured tag style."""

    def __init__(self, style: Union[str, TagStyle, None] = TagStyle.NORMALIZED) -> None:
        self.style = TagStyle.parse(style)

    def normalize(self, key: str) -> str:
        if self.style is TagStyle.RAW:
            return key
        return snakecase(key)

    def key_name(self, key: str) -> str:
        """Name under which a fixed envelope field appears in converted trees."""
        if self.style is TagStyle.NORMALIZED:
            return snakecase(key)
        return lower_camelcase(key)

    def convert(self, tree: Any) -> Any:
        """Apply ``normalize`` to every key at every level, list elements included."""
        if self.style is TagStyle.RAW:
            return tree
        if isinstance(tree, dict):
            # <sf:type> and a Type field both become "type"; keep both.
            converted: Dict[str, Any] = {}
            for k, v in tree.items():
                merge_key(converted, self.normalize(k), self.convert(v))
            return converted
        if isinstance(tree, list):
            return [self.convert(v) for v in tree]
        return tree
