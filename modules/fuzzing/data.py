"""
Fuzzing Data Factory
Builds one FuzzingData record per (path, HTTP method) of a resolved contract
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple

from core.config import values_for_path
from core.logging import get_logger
from utils.http_client import RequestMethod
from utils.payload import join_field, has_field, replace_field
from .examples import ExampleGenerator, json_safe
from .schemas import Schema, effective_schema, schema_type

SUPPORTED_METHODS: Tuple[RequestMethod, ...] = (
    RequestMethod.POST,
    RequestMethod.PUT,
    RequestMethod.PATCH,
    RequestMethod.GET,
    RequestMethod.DELETE,
)
OPERATION_KEYS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
MAX_FIELD_DEPTH = 5
JSON_MEDIA_TYPE = "application/json"


@dataclass(frozen=True)
class FuzzingData:
    """
    Input of every fuzzer for one operation

    Fuzzers must not mutate the record, ``payload_copy`` returns a document
    that is safe to change.
    """
    method: RequestMethod
    path: str
    payload: Any = None
    request_schema: Schema = field(default_factory=dict)
    all_fields: Tuple[str, ...] = ()
    request_property_types: Dict[str, Schema] = field(default_factory=dict)
    required_fields: FrozenSet[str] = frozenset()
    reference_data: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    required_headers: FrozenSet[str] = frozenset()
    response_codes: Tuple[str, ...] = ()
    query_params: FrozenSet[str] = frozenset()
    path_methods: Tuple[str, ...] = ()

    def payload_copy(self) -> Any:
        return copy.deepcopy(self.payload)

    def field_schema(self, field_name: str) -> Optional[Schema]:
        return self.request_property_types.get(field_name)

    def is_required(self, field_name: str) -> bool:
        return field_name in self.required_fields


def flatten_fields(schema: Schema, prefix: str = "", parent_required: bool = True,
                   depth: int = 0, seen: Optional[FrozenSet[int]] = None
                   ) -> Iterator[Tuple[str, Schema, bool]]:
    """
    Walk the properties of an object schema

    Yields ``(field_name, schema, required)`` with nested names joined by
    ``#``. Array items are walked under the array's name. A nested field is
    required only when every parent on its way is required too.
    """
    schema = effective_schema(schema)
    seen = seen or frozenset()
    if depth > MAX_FIELD_DEPTH or id(schema) in seen:
        return
    seen = seen | {id(schema)}

    if schema_type(schema) == "array":
        yield from flatten_fields(schema.get("items") or {}, prefix, parent_required, depth + 1, seen)
        return

    required = set(schema.get("required") or [])
    for name, property_schema in (schema.get("properties") or {}).items():
        field_name = join_field(prefix, name)
        property_schema = effective_schema(property_schema)
        is_required = parent_required and name in required
        yield field_name, property_schema, is_required
        if schema_type(property_schema) in ("object", "array"):
            yield from flatten_fields(property_schema, field_name, is_required, depth + 1, seen)


class FuzzingDataFactory:
    """
    FuzzingData builder

    Reference data and headers files map a path (or ``all``) to
    ``name -> value`` pairs; both are merged into every record of the path.
    """

    def __init__(self, ref_data_per_path: Optional[Dict[str, Dict[str, Any]]] = None,
                 headers_per_path: Optional[Dict[str, Dict[str, Any]]] = None,
                 generator: Optional[ExampleGenerator] = None):
        self.ref_data_per_path = ref_data_per_path or {}
        self.headers_per_path = headers_per_path or {}
        self.generator = generator or ExampleGenerator()
        self.logger = get_logger(__name__)

    def from_path_item(self, path: str, path_item: Dict[str, Any]) -> List[FuzzingData]:
        """
        Build the records of a path, one per supported HTTP method

        Args:
            path: Path template as declared in the contract
            path_item: Resolved OpenAPI path item

        Returns:
            Records ordered by the supported methods order, empty if the path
            declares none of them
        """
        path_item = path_item or {}
        documented = tuple(key.upper() for key in OPERATION_KEYS if isinstance(path_item.get(key), dict))

        records = []
        for method in SUPPORTED_METHODS:
            operation = path_item.get(method.value.lower())
            if not isinstance(operation, dict):
                continue
            records.append(self._build(path, method, path_item, operation, documented))

        self.logger.debug("Fuzzing data created", path=path, methods=[r.method.value for r in records])
        return records

    def _build(self, path: str, method: RequestMethod, path_item: Dict[str, Any],
               operation: Dict[str, Any], documented: Tuple[str, ...]) -> FuzzingData:
        parameters = self._parameters(path_item, operation)

        request_schema, query_params, path_params = self._request_schema(method, operation, parameters)
        required_fields = set()
        property_types = {}
        all_fields = []
        for field_name, field_schema, required in flatten_fields(request_schema):
            if field_name in path_params:
                continue
            all_fields.append(field_name)
            property_types[field_name] = field_schema
            if required:
                required_fields.add(field_name)

        reference_data = {str(k): json_safe(v) for k, v in values_for_path(self.ref_data_per_path, path).items()}
        payload = self.generator.generate(request_schema)
        payload = self._apply_reference_data(payload, reference_data)

        headers, required_headers = self._headers(path, parameters)

        return FuzzingData(
            method=method,
            path=path,
            payload=payload,
            request_schema=request_schema,
            all_fields=tuple(all_fields),
            request_property_types=property_types,
            required_fields=frozenset(required_fields),
            reference_data=reference_data,
            headers=headers,
            required_headers=frozenset(required_headers),
            response_codes=tuple(str(code) for code in (operation.get("responses") or {})),
            query_params=frozenset(query_params),
            path_methods=documented
        )

    @staticmethod
    def _parameters(path_item: Dict[str, Any], operation: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Path level parameters overridden by operation parameters with the same name and location"""
        merged: Dict[Tuple[str, str], Dict[str, Any]] = {}
        for parameter in list(path_item.get("parameters") or []) + list(operation.get("parameters") or []):
            if isinstance(parameter, dict) and "name" in parameter:
                merged[(parameter["name"], parameter.get("in", "query"))] = parameter
        return list(merged.values())

    def _request_schema(self, method: RequestMethod, operation: Dict[str, Any],
                        parameters: List[Dict[str, Any]]) -> Tuple[Schema, List[str], List[str]]:
        body_schema = self._body_schema(operation, parameters) if method.has_body else None

        properties: Dict[str, Schema] = {}
        required: List[str] = []
        query_params: List[str] = []
        path_params: List[str] = []
        for parameter in parameters:
            location = parameter.get("in")
            if location not in ("query", "path"):
                continue
            name = parameter["name"]
            properties[name] = parameter.get("schema") or {
                key: value for key, value in parameter.items() if key not in ("name", "in", "required")
            }
            if parameter.get("required") or location == "path":
                required.append(name)
            if location == "query":
                query_params.append(name)
            else:
                path_params.append(name)

        if body_schema is None:
            return {"type": "object", "properties": properties, "required": required}, query_params, path_params

        body_schema = effective_schema(body_schema)
        if schema_type(body_schema) != "object" or not properties:
            return body_schema, [], path_params

        merged = dict(body_schema)
        merged["properties"] = {**properties, **(body_schema.get("properties") or {})}
        merged["required"] = list(body_schema.get("required") or []) + [
            name for name in required if name not in (body_schema.get("required") or [])
        ]
        return merged, query_params, path_params

    @staticmethod
    def _body_schema(operation: Dict[str, Any], parameters: List[Dict[str, Any]]) -> Optional[Schema]:
        content = (operation.get("requestBody") or {}).get("content") or {}
        if content:
            media_type = JSON_MEDIA_TYPE if JSON_MEDIA_TYPE in content else next(
                (name for name in content if "json" in name), next(iter(content))
            )
            return (content[media_type] or {}).get("schema") or {}

        # Swagger 2 body parameter
        for parameter in parameters:
            if parameter.get("in") == "body":
                return parameter.get("schema") or {}
        return None

    @staticmethod
    def _apply_reference_data(payload: Any, reference_data: Dict[str, Any]) -> Any:
        for field_name, value in reference_data.items():
            if has_field(payload, field_name):
                payload = replace_field(payload, field_name, value)
            elif isinstance(payload, dict) and "#" not in field_name:
                payload = dict(payload)
                payload[field_name] = copy.deepcopy(value)
        return payload

    def _headers(self, path: str, parameters: List[Dict[str, Any]]) -> Tuple[Dict[str, str], List[str]]:
        headers: Dict[str, str] = {}
        required: List[str] = []
        for parameter in parameters:
            if parameter.get("in") != "header":
                continue
            name = parameter["name"]
            value = self.generator.generate(parameter.get("schema") or {
                key: item for key, item in parameter.items() if key not in ("name", "in", "required")
            })
            headers[name] = "" if value is None else str(value)
            if parameter.get("required"):
                required.append(name)

        for name, value in values_for_path(self.headers_per_path, path).items():
            headers[str(name)] = "" if value is None else str(value)
        return headers, required
