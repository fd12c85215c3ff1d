"""
Payload Helpers
Field level operations on JSON request documents

Nested fields are addressed with ``#`` separated names (``address#street``).
Arrays on the way are traversed element by element, so an operation on
``items#price`` applies to every element of ``items``.
"""

import copy
import json
from typing import Any, Iterable, List

FIELD_SEPARATOR = "#"

_MISSING = object()


def _expand(node: Any) -> List[Any]:
    return node if isinstance(node, list) else [node]


def _parents(document: Any, tokens: List[str]) -> List[dict]:
    """Objects holding the last token of a field path"""
    nodes = [document]
    for token in tokens[:-1]:
        next_nodes = []
        for node in nodes:
            for item in _expand(node):
                if isinstance(item, dict) and token in item:
                    next_nodes.append(item[token])
        nodes = next_nodes
    return [item for node in nodes for item in _expand(node) if isinstance(item, dict)]


def split_field(field: str) -> List[str]:
    return field.split(FIELD_SEPARATOR)


def join_field(*tokens: str) -> str:
    return FIELD_SEPARATOR.join(token for token in tokens if token)


def has_field(document: Any, field: str) -> bool:
    tokens = split_field(field)
    return any(tokens[-1] in parent for parent in _parents(document, tokens))


def get_field(document: Any, field: str, default: Any = None) -> Any:
    """Value of the first occurrence of a field"""
    tokens = split_field(field)
    for parent in _parents(document, tokens):
        value = parent.get(tokens[-1], _MISSING)
        if value is not _MISSING:
            return value
    return default


def replace_field(document: Any, field: str, value: Any) -> Any:
    """Copy of the document with every occurrence of ``field`` set to ``value``"""
    result = copy.deepcopy(document)
    tokens = split_field(field)
    for parent in _parents(result, tokens):
        if tokens[-1] in parent:
            parent[tokens[-1]] = copy.deepcopy(value)
    return result


def remove_fields(document: Any, fields: Iterable[str]) -> Any:
    """Copy of the document without the given fields"""
    result = copy.deepcopy(document)
    for field in fields:
        tokens = split_field(field)
        for parent in _parents(result, tokens):
            parent.pop(tokens[-1], None)
    return result


def add_field(document: Any, name: str, value: Any) -> Any:
    """Copy of the document with a new top-level field, arrays get it on every element"""
    result = copy.deepcopy(document)
    for item in _expand(result):
        if isinstance(item, dict):
            item[name] = copy.deepcopy(value)
    return result


def to_json_text(document: Any) -> str:
    return json.dumps(document)
