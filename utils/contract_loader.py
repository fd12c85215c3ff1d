"""
Contract Loader
Reads an OpenAPI contract and resolves its local references once
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List
import yaml

from core.logging import get_logger

logger = get_logger(__name__)


class ContractError(Exception):
    """Raised when a contract cannot be read, parsed or resolved"""


@dataclass
class Contract:
    """Resolved OpenAPI document"""
    source: str
    document: Dict[str, Any]

    @property
    def paths(self) -> Dict[str, Dict[str, Any]]:
        return self.document.get("paths") or {}

    @property
    def title(self) -> str:
        return (self.document.get("info") or {}).get("title", "")

    @property
    def version(self) -> str:
        return str((self.document.get("info") or {}).get("version", ""))

    def path_names(self) -> List[str]:
        return list(self.paths.keys())


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def resolve_references(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace every local ``$ref`` with the object it points to

    The same reference always resolves to the same object, recursive schemas
    therefore become cyclic object graphs instead of infinite trees.

    Raises:
        ContractError: On remote or dangling references
    """
    cache: Dict[str, Any] = {}

    def _lookup(ref: str) -> Any:
        if not ref.startswith("#/"):
            raise ContractError(f"Only local references are supported: {ref}")
        node: Any = document
        for token in ref[2:].split("/"):
            token = _unescape(token)
            if isinstance(node, dict) and token in node:
                node = node[token]
            elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
                node = node[int(token)]
            else:
                raise ContractError(f"Unresolvable reference: {ref}")
        return node

    def _walk(node: Any) -> Any:
        if isinstance(node, list):
            return [_walk(item) for item in node]
        if not isinstance(node, dict):
            return node

        ref = node.get("$ref")
        if not isinstance(ref, str):
            return {key: _walk(value) for key, value in node.items()}

        siblings = {key: _walk(value) for key, value in node.items() if key != "$ref"}
        if ref not in cache:
            target = _lookup(ref)
            if isinstance(target, dict):
                placeholder: Dict[str, Any] = {}
                cache[ref] = placeholder
                placeholder.update(_walk(target))
            else:
                cache[ref] = _walk(target)
        resolved = cache[ref]
        if siblings and isinstance(resolved, dict):
            return {**resolved, **siblings}
        return resolved

    return _walk(document)


def load_contract(contract_path: str) -> Contract:
    """
    Load and resolve a YAML or JSON contract

    Raises:
        ContractError: If the contract is missing, unparsable or not OpenAPI
    """
    path = Path(contract_path)
    if not path.is_file():
        raise ContractError(f"Contract not found: {contract_path}")

    start_time = time.time()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            document = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ContractError(f"Error parsing OpenAPI contract {contract_path}: {e}")

    if not isinstance(document, dict) or not ("openapi" in document or "swagger" in document):
        raise ContractError(f"Not an OpenAPI contract: {contract_path}")
    if not isinstance(document.get("paths"), dict):
        raise ContractError(f"Contract has no paths: {contract_path}")

    contract = Contract(source=contract_path, document=resolve_references(document))
    logger.info("Finished parsing the contract",
                contract=contract_path,
                paths=len(contract.paths),
                elapsed_ms=int((time.time() - start_time) * 1000))
    return contract
