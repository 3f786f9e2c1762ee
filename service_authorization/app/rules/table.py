"""
Authorization rule table: loading, validation and the process-wide default.

The table is parsed once, validated, and then only read. Lookups for a
resource or operation that is not in the table yield no rules.
"""

import json
import functools
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from shared.config import BaseConfig
from shared.errors import RuleTableError
from shared.logging import get_logger

from .models import KNOWN_SCOPES, Rule, RuleSpec

logger = get_logger("authorization.rule_table")

DEFAULT_MATRIX_RESOURCE = "authorization_matrix.json"

_EMPTY: Tuple[Rule, ...] = ()


class RuleTable:
    """Immutable mapping of ``resource -> operation -> ordered rules``."""

    def __init__(self, rules: Mapping[str, Mapping[str, Tuple[Rule, ...]]]):
        self._rules = MappingProxyType({
            resource: MappingProxyType(dict(operations))
            for resource, operations in rules.items()
        })

    def rules_for(self, resource: str, operation: str) -> Tuple[Rule, ...]:
        """Ordered rules for a resource/operation pair, empty when unknown."""
        operations = self._rules.get(resource)
        if operations is None:
            return _EMPTY
        return operations.get(operation, _EMPTY)

    def resources(self) -> Tuple[str, ...]:
        return tuple(self._rules)

    def operations(self, resource: str) -> Tuple[str, ...]:
        return tuple(self._rules.get(resource, {}))

    def __iter__(self) -> Iterator[Tuple[str, str, Tuple[Rule, ...]]]:
        for resource, operations in self._rules.items():
            for operation, rules in operations.items():
                yield resource, operation, rules

    def __len__(self) -> int:
        return sum(len(rules) for _, _, rules in self)

    @classmethod
    def from_dict(cls, data: Any) -> "RuleTable":
        """Validate a decoded matrix document and build the table.

        Raises:
            RuleTableError: if the document does not have the matrix shape.
        """
        if not isinstance(data, Mapping):
            raise RuleTableError("Rule table must be a mapping of resources")

        table: Dict[str, Dict[str, Tuple[Rule, ...]]] = {}

        for resource, operations in data.items():
            if not isinstance(operations, Mapping):
                raise RuleTableError(
                    f"Resource '{resource}' must map operations to rule lists",
                    details={"resource": resource}
                )

            table[resource] = {}
            for operation, rule_list in operations.items():
                table[resource][operation] = _parse_rules(resource, operation, rule_list)

        rule_table = cls(table)
        logger.info(
            "Rule table loaded",
            resources=len(rule_table.resources()),
            rules=len(rule_table)
        )
        return rule_table

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RuleTable":
        """Load a matrix from a ``.json`` or ``.yaml``/``.yml`` file."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise RuleTableError(f"Cannot read rule table: {e}", details={"path": str(path)}) from e

        return cls.from_dict(_decode(text, path.suffix.lower(), str(path)))


def _decode(text: str, suffix: str, source: str) -> Any:
    try:
        if suffix in (".yaml", ".yml"):
            return yaml.safe_load(text)
        return json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise RuleTableError(f"Cannot parse rule table: {e}", details={"path": source}) from e


def _parse_rules(resource: str, operation: str, rule_list: Any) -> Tuple[Rule, ...]:
    if not isinstance(rule_list, list):
        raise RuleTableError(
            f"Rules for {resource}.{operation} must be a list",
            details={"resource": resource, "operation": operation}
        )

    rules = []
    for index, raw in enumerate(rule_list):
        try:
            spec = RuleSpec.model_validate(raw)
        except PydanticValidationError as e:
            raise RuleTableError(
                f"Invalid rule {resource}.{operation}[{index}]",
                details={
                    "resource": resource,
                    "operation": operation,
                    "index": index,
                    "errors": e.errors(include_url=False),
                }
            ) from e

        rule = spec.to_rule()
        if rule.scope not in KNOWN_SCOPES:
            # Kept as-is; unknown scopes never match at evaluation time.
            logger.warning(
                "Unrecognized scope in rule table",
                resource=resource,
                operation=operation,
                index=index,
                scope=rule.scope
            )
        if not rule.roles:
            logger.warning(
                "Rule without roles can never match",
                resource=resource,
                operation=operation,
                index=index
            )
        rules.append(rule)

    return tuple(rules)


def load_default_rule_table(path: Optional[str] = None) -> RuleTable:
    """Load the configured matrix, or the packaged one when none is set."""
    if path:
        return RuleTable.from_file(path)

    text = resources.files(__package__).joinpath(DEFAULT_MATRIX_RESOURCE).read_text(encoding="utf-8")
    return RuleTable.from_dict(_decode(text, ".json", DEFAULT_MATRIX_RESOURCE))


@functools.lru_cache(maxsize=1)
def get_rule_table() -> RuleTable:
    """Process-wide rule table, loaded on first use."""
    return load_default_rule_table(BaseConfig().authorization_matrix_path)


def reset_rule_table() -> None:
    """Drop the cached process-wide table so the next call reloads it."""
    get_rule_table.cache_clear()
