"""
Rule Catalog

Loads the patient validation rules from YAML, compiles them into
immutable Rule objects and exposes them in declaration order.

The catalog is built once at startup and never changes afterwards.
Loading is all-or-nothing: any bad rule raises CatalogConfigurationError
and no catalog is returned, so validations never run against a partial
rule set. Reloading means building a new catalog.
"""

import re
import string
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..config.constants import (
    RuleKind,
    Severity,
    REGEX_PATTERNS,
    MESSAGE_PLACEHOLDERS,
    ENGINE_INTERNAL_CATEGORY,
)
from ..config.settings import Settings
from ..models.patient_record import PatientRecord, is_known_field
from ..utils.error_handler import CatalogConfigurationError, ErrorCode, catalog_error
from ..utils.logger import get_logger
from .predicates import CHECK_REGISTRY, build_condition


logger = get_logger(__name__)


class CategoryDefinition(BaseModel):
    """Regulatory category declared by the catalog"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., description="Category name used by rules and compliance flags")
    description: Optional[str] = Field(None, description="What the category covers")
    optional: bool = Field(
        False,
        description="Failures in optional categories are reported as optionalFields"
    )


class RuleDefinition(BaseModel):
    """One rule entry as written in the catalog YAML"""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1, description="Unique rule identifier")
    field: str = Field(..., min_length=1, description="PatientRecord field path")
    kind: RuleKind = Field(..., description="Rule kind")
    severity: Severity = Field(Severity.ERROR, description="error or warning")
    category: str = Field(..., description="Regulatory category")
    message: str = Field(..., min_length=1, description="Message template")
    suggestion: Optional[str] = Field(None, description="Suggested fix")

    pattern: Optional[str] = Field(None, description="Inline regex (format_pattern)")
    pattern_name: Optional[str] = Field(
        None, description="Name of a shared regex in REGEX_PATTERNS (format_pattern)"
    )
    when: Optional[Dict[str, Any]] = Field(
        None, description="Applicability condition (conditionally_required)"
    )
    check: Optional[str] = Field(None, description="Registered check name (cross_field)")
    params: Dict[str, Any] = Field(default_factory=dict, description="Check parameters")


class Rule(BaseModel):
    """Compiled, immutable validation rule"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    rule_id: str
    field: str
    kind: RuleKind
    severity: Severity
    category: str
    message: str
    suggestion: Optional[str] = None
    pattern: Optional[re.Pattern] = None
    predicate: Optional[Callable[[PatientRecord, date], bool]] = None
    check: Optional[str] = None

    @model_validator(mode="after")
    def _check_kind_requirements(self) -> "Rule":
        if self.kind == RuleKind.FORMAT_PATTERN and self.pattern is None:
            raise ValueError(f"{self.rule_id}: format_pattern rules need a pattern")
        if self.kind in (RuleKind.CONDITIONALLY_REQUIRED, RuleKind.CROSS_FIELD) and self.predicate is None:
            raise ValueError(f"{self.rule_id}: {self.kind.value} rules need a predicate")
        if self.kind == RuleKind.REQUIRED and (self.pattern is not None or self.predicate is not None):
            raise ValueError(f"{self.rule_id}: required rules take no pattern or predicate")
        return self

    def render_message(self, value: Any = None) -> str:
        """
        Render the message template for a failing value.

        Args:
            value: Field value that failed

        Returns:
            Message with {field} and {value} substituted
        """
        return self.message.format(field=self.field, value="" if value is None else value)


def _check_message_template(rule_id: str, template: str) -> None:
    try:
        placeholders = {
            name for _, name, _, _ in string.Formatter().parse(template) if name is not None
        }
    except ValueError as e:
        raise catalog_error(
            f"Rule '{rule_id}' has a malformed message template: {e}",
            ErrorCode.CATALOG_INVALID_RULE,
            rule_id=rule_id
        )
    unknown = placeholders - set(MESSAGE_PLACEHOLDERS)
    if unknown:
        raise catalog_error(
            f"Rule '{rule_id}' message uses unknown placeholders: {sorted(unknown)}",
            ErrorCode.CATALOG_INVALID_RULE,
            rule_id=rule_id,
            allowed=list(MESSAGE_PLACEHOLDERS)
        )


def _require_known_field(rule_id: str, path: Any, role: str) -> None:
    if not isinstance(path, str) or not is_known_field(path):
        raise catalog_error(
            f"Rule '{rule_id}' {role} references unknown field '{path}'",
            ErrorCode.CATALOG_UNKNOWN_FIELD,
            rule_id=rule_id,
            field=path
        )


def _compile_pattern(definition: RuleDefinition) -> re.Pattern:
    if (definition.pattern is None) == (definition.pattern_name is None):
        raise catalog_error(
            f"Rule '{definition.id}' needs exactly one of 'pattern' or 'pattern_name'",
            ErrorCode.CATALOG_INVALID_RULE,
            rule_id=definition.id
        )

    if definition.pattern_name is not None:
        if definition.pattern_name not in REGEX_PATTERNS:
            raise catalog_error(
                f"Rule '{definition.id}' references unknown pattern '{definition.pattern_name}'",
                ErrorCode.CATALOG_INVALID_PATTERN,
                rule_id=definition.id,
                available=sorted(REGEX_PATTERNS)
            )
        source = REGEX_PATTERNS[definition.pattern_name]
    else:
        source = definition.pattern

    try:
        return re.compile(source)
    except re.error as e:
        raise CatalogConfigurationError(
            f"Rule '{definition.id}' has a malformed pattern: {e}",
            code=ErrorCode.CATALOG_INVALID_PATTERN,
            details={'rule_id': definition.id, 'pattern': source},
            cause=e
        )


def _compile_condition(definition: RuleDefinition) -> Callable[[PatientRecord, date], bool]:
    if definition.when is None:
        raise catalog_error(
            f"Rule '{definition.id}' is conditionally_required but has no 'when' block",
            ErrorCode.CATALOG_INVALID_RULE,
            rule_id=definition.id
        )
    try:
        predicate, condition_field = build_condition(definition.when)
    except ValueError as e:
        raise CatalogConfigurationError(
            f"Rule '{definition.id}' has an invalid 'when' block: {e}",
            code=ErrorCode.CATALOG_INVALID_RULE,
            details={'rule_id': definition.id},
            cause=e
        )
    _require_known_field(definition.id, condition_field, "condition")
    return predicate


def _compile_check(definition: RuleDefinition) -> Callable[[PatientRecord, date], bool]:
    if not definition.check:
        raise catalog_error(
            f"Rule '{definition.id}' is cross_field but names no 'check'",
            ErrorCode.CATALOG_INVALID_RULE,
            rule_id=definition.id
        )
    registered = CHECK_REGISTRY.get(definition.check)
    if registered is None:
        raise catalog_error(
            f"Rule '{definition.id}' references unknown check '{definition.check}'",
            ErrorCode.CATALOG_UNKNOWN_PREDICATE,
            rule_id=definition.id,
            available=sorted(CHECK_REGISTRY)
        )
    for param in registered.field_params:
        if param in definition.params:
            _require_known_field(definition.id, definition.params[param], f"check parameter '{param}'")
    try:
        return registered.factory(**definition.params)
    except TypeError as e:
        raise CatalogConfigurationError(
            f"Rule '{definition.id}' passes invalid parameters to '{definition.check}': {e}",
            code=ErrorCode.CATALOG_INVALID_RULE,
            details={'rule_id': definition.id, 'params': definition.params},
            cause=e
        )


def compile_rule(definition: RuleDefinition, categories: Mapping[str, CategoryDefinition]) -> Rule:
    """
    Turn a catalog entry into an immutable Rule.

    Args:
        definition: Parsed YAML entry
        categories: Declared categories by name

    Returns:
        Compiled Rule

    Raises:
        CatalogConfigurationError: On any inconsistency in the entry
    """
    if definition.category not in categories:
        raise catalog_error(
            f"Rule '{definition.id}' uses undeclared category '{definition.category}'",
            ErrorCode.CATALOG_UNKNOWN_CATEGORY,
            rule_id=definition.id,
            category=definition.category
        )
    _require_known_field(definition.id, definition.field, "field")
    _check_message_template(definition.id, definition.message)

    kind = definition.kind
    extras = {
        "pattern": definition.pattern is not None or definition.pattern_name is not None,
        "when": definition.when is not None,
        "check": definition.check is not None or bool(definition.params),
    }
    allowed = {
        RuleKind.REQUIRED: set(),
        RuleKind.CONDITIONALLY_REQUIRED: {"when"},
        RuleKind.FORMAT_PATTERN: {"pattern"},
        RuleKind.CROSS_FIELD: {"check"},
    }[kind]
    stray = sorted(key for key, present in extras.items() if present and key not in allowed)
    if stray:
        raise catalog_error(
            f"Rule '{definition.id}' ({kind.value}) does not accept: {', '.join(stray)}",
            ErrorCode.CATALOG_INVALID_RULE,
            rule_id=definition.id
        )

    pattern = None
    predicate = None
    if kind == RuleKind.FORMAT_PATTERN:
        pattern = _compile_pattern(definition)
    elif kind == RuleKind.CONDITIONALLY_REQUIRED:
        predicate = _compile_condition(definition)
    elif kind == RuleKind.CROSS_FIELD:
        predicate = _compile_check(definition)

    return Rule(
        rule_id=definition.id,
        field=definition.field,
        kind=kind,
        severity=definition.severity,
        category=definition.category,
        message=definition.message,
        suggestion=definition.suggestion,
        pattern=pattern,
        predicate=predicate,
        check=definition.check
    )


class RuleCatalog:
    """
    Immutable, ordered set of validation rules.

    Construct once (from_yaml / from_dict / load_default_catalog) and
    pass the instance to the validator, scorer and orchestrator.
    """

    def __init__(
        self,
        rules: Tuple[Rule, ...],
        categories: Tuple[CategoryDefinition, ...],
        source: Optional[str] = None
    ):
        """
        Initialize the catalog from compiled rules.

        Args:
            rules: Compiled rules in evaluation order
            categories: Declared categories
            source: Where the catalog came from (for logging)
        """
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._categories: Mapping[str, CategoryDefinition] = MappingProxyType(
            {category.name: category for category in categories}
        )
        self._by_category: Mapping[str, Tuple[Rule, ...]] = MappingProxyType({
            name: tuple(rule for rule in self._rules if rule.category == name)
            for name in self._categories
        })
        self._by_id: Mapping[str, Rule] = MappingProxyType(
            {rule.rule_id: rule for rule in self._rules}
        )
        self.source = source

    # ------------------------------------------------------------------ access

    def all_rules(self) -> Tuple[Rule, ...]:
        """All rules in declaration order."""
        return self._rules

    def rules_by_category(self, category: str) -> Tuple[Rule, ...]:
        """
        Rules belonging to one category, in declaration order.

        Args:
            category: Category name

        Returns:
            Tuple of rules (empty for unknown categories)
        """
        return self._by_category.get(category, ())

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Look up a rule by id."""
        return self._by_id.get(rule_id)

    @property
    def categories(self) -> Tuple[str, ...]:
        """Declared category names in declaration order."""
        return tuple(self._categories)

    @property
    def optional_categories(self) -> FrozenSet[str]:
        """Names of categories flagged optional."""
        return frozenset(name for name, c in self._categories.items() if c.optional)

    def is_optional_category(self, category: str) -> bool:
        definition = self._categories.get(category)
        return bool(definition and definition.optional)

    def get_category(self, category: str) -> Optional[CategoryDefinition]:
        return self._categories.get(category)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __repr__(self) -> str:
        return f"RuleCatalog(rules={len(self._rules)}, categories={list(self._categories)}, source={self.source!r})"

    # ---------------------------------------------------------------- loading

    @classmethod
    def from_dict(cls, data: Any, source: str = "<dict>") -> "RuleCatalog":
        """
        Build a catalog from already-parsed YAML content.

        Args:
            data: Mapping with 'categories' and 'rules'
            source: Label for error messages and logs

        Returns:
            RuleCatalog

        Raises:
            CatalogConfigurationError: If any part of the catalog is invalid
        """
        if not isinstance(data, Mapping):
            raise catalog_error(
                f"Rule catalog {source} must be a mapping with 'categories' and 'rules'",
                ErrorCode.CATALOG_PARSE_ERROR,
                source=source
            )

        raw_categories = data.get("categories")
        raw_rules = data.get("rules")
        unknown_keys = set(data) - {"categories", "rules"}
        if unknown_keys:
            raise catalog_error(
                f"Rule catalog {source} has unknown top-level keys: {sorted(unknown_keys)}",
                ErrorCode.CATALOG_PARSE_ERROR,
                source=source
            )
        if not isinstance(raw_categories, Mapping) or not raw_categories:
            raise catalog_error(
                f"Rule catalog {source} must declare at least one category",
                ErrorCode.CATALOG_PARSE_ERROR,
                source=source
            )
        if not isinstance(raw_rules, list):
            raise catalog_error(
                f"Rule catalog {source} must contain a 'rules' list",
                ErrorCode.CATALOG_PARSE_ERROR,
                source=source
            )

        categories: Dict[str, CategoryDefinition] = {}
        for name, body in raw_categories.items():
            if name == ENGINE_INTERNAL_CATEGORY:
                raise catalog_error(
                    f"Category name '{ENGINE_INTERNAL_CATEGORY}' is reserved",
                    ErrorCode.CATALOG_UNKNOWN_CATEGORY,
                    source=source
                )
            try:
                categories[name] = CategoryDefinition(name=name, **(body or {}))
            except (ValidationError, TypeError) as e:
                raise CatalogConfigurationError(
                    f"Category '{name}' in {source} is invalid: {e}",
                    code=ErrorCode.CATALOG_PARSE_ERROR,
                    details={'source': source, 'category': name},
                    cause=e
                )

        rules: List[Rule] = []
        seen_ids = set()
        for index, entry in enumerate(raw_rules):
            if not isinstance(entry, Mapping):
                raise catalog_error(
                    f"Rule #{index} in {source} is not a mapping",
                    ErrorCode.CATALOG_INVALID_RULE,
                    source=source,
                    index=index
                )
            try:
                definition = RuleDefinition(**entry)
            except ValidationError as e:
                raise CatalogConfigurationError(
                    f"Rule #{index} ({entry.get('id', '?')}) in {source} is invalid: {e}",
                    code=ErrorCode.CATALOG_INVALID_RULE,
                    details={'source': source, 'index': index},
                    cause=e
                )

            if definition.id in seen_ids:
                raise catalog_error(
                    f"Duplicate rule id '{definition.id}' in {source}",
                    ErrorCode.CATALOG_DUPLICATE_RULE,
                    source=source,
                    rule_id=definition.id
                )
            seen_ids.add(definition.id)
            rules.append(compile_rule(definition, categories))

        catalog = cls(tuple(rules), tuple(categories.values()), source=source)
        logger.info(
            "Rule catalog loaded",
            source=source,
            rules=len(catalog),
            categories=list(catalog.categories)
        )
        return catalog

    @classmethod
    def from_yaml(cls, rules_path: Union[str, Path]) -> "RuleCatalog":
        """
        Load a catalog from a YAML file.

        Args:
            rules_path: Path to the catalog YAML

        Returns:
            RuleCatalog

        Raises:
            CatalogConfigurationError: If the file is missing, unparsable
                or contains invalid rules
        """
        rules_path = Path(rules_path)
        if not rules_path.exists():
            raise catalog_error(
                f"Rule catalog file not found: {rules_path}",
                ErrorCode.CATALOG_NOT_FOUND,
                path=str(rules_path)
            )

        try:
            with open(rules_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CatalogConfigurationError(
                f"Failed to parse rule catalog {rules_path}: {e}",
                code=ErrorCode.CATALOG_PARSE_ERROR,
                details={'path': str(rules_path)},
                cause=e
            )

        return cls.from_dict(data, source=str(rules_path))


def load_default_catalog(settings: Optional[Settings] = None) -> RuleCatalog:
    """
    Load the catalog configured in settings (PDV_RULES_PATH or the bundled YAML).

    Args:
        settings: Settings instance (reads the environment if None)

    Returns:
        RuleCatalog
    """
    settings = settings or Settings()
    return RuleCatalog.from_yaml(settings.rules_path)
