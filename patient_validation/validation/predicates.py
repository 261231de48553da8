"""
Rule Predicates

Named, side-effect-free checks that the rule catalog wires into
conditionally-required and cross-field rules.

A predicate has the signature ``(record, as_of) -> bool`` where ``as_of``
is the reference date supplied by the caller. Catalog YAML refers to
checks by name (``check: date_not_in_future``) and to applicability
conditions declaratively (``when: {field: ..., equals: ...}``); both are
compiled into closures here.

Blank or unparsable inputs make cross-field checks pass: presence and
format are the job of the required and format rules on the same field.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Iterable, Mapping, Tuple

from ..models.patient_record import PatientRecord, resolve_field
from ..utils.date_utils import parse_date, is_future_date, is_past_date
from ..utils.format_utils import is_blank


Predicate = Callable[[PatientRecord, date], bool]


@dataclass(frozen=True)
class RegisteredCheck:
    """Registered cross-field check"""
    name: str
    factory: Callable[..., Predicate]
    field_params: Tuple[str, ...]
    description: str


CHECK_REGISTRY: Dict[str, RegisteredCheck] = {}


def register_check(name: str, field_params: Iterable[str] = ()):
    """
    Register a predicate factory under a catalog-visible name.

    Args:
        name: Name used by ``check:`` in the catalog
        field_params: Factory parameters that hold record field paths
            (verified against PatientRecord when the catalog loads)
    """
    def decorator(factory: Callable[..., Predicate]) -> Callable[..., Predicate]:
        CHECK_REGISTRY[name] = RegisteredCheck(
            name=name,
            factory=factory,
            field_params=tuple(field_params),
            description=(factory.__doc__ or "").strip().splitlines()[0] if factory.__doc__ else ""
        )
        return factory
    return decorator


def _normalize(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


# =============================================================================
# CROSS-FIELD CHECKS
# =============================================================================

@register_check("date_not_in_future", field_params=("date_field",))
def date_not_in_future(date_field: str) -> Predicate:
    """Date field must not lie after the reference date."""
    def predicate(record: PatientRecord, as_of: date) -> bool:
        value = resolve_field(record, date_field)
        if is_blank(value):
            return True
        return not is_future_date(value, reference=as_of)
    return predicate


@register_check("coverage_not_expired", field_params=("expiry_field", "coverage_field"))
def coverage_not_expired(
    expiry_field: str,
    coverage_field: str,
    exempt_values: Iterable[str] = ()
) -> Predicate:
    """Policy expiry must not precede the reference date unless coverage is exempt."""
    exempt = frozenset(_normalize(v) for v in exempt_values)

    def predicate(record: PatientRecord, as_of: date) -> bool:
        if _normalize(resolve_field(record, coverage_field)) in exempt:
            return True
        expiry = resolve_field(record, expiry_field)
        if is_blank(expiry) or parse_date(str(expiry)) is None:
            return True
        return not is_past_date(expiry, reference=as_of)
    return predicate


@register_check("flag_set_when_present", field_params=("flag_field", "subject_field"))
def flag_set_when_present(flag_field: str, subject_field: str) -> Predicate:
    """Boolean flag must be true whenever the subject field has a value."""
    def predicate(record: PatientRecord, as_of: date) -> bool:
        if is_blank(resolve_field(record, subject_field)):
            return True
        return resolve_field(record, flag_field) is True
    return predicate


# =============================================================================
# APPLICABILITY CONDITIONS
# =============================================================================

CONDITION_OPERATORS = ("equals", "not_equals", "in", "not_in")


def build_condition(condition: Mapping[str, Any]) -> Tuple[Predicate, str]:
    """
    Compile a ``when`` block into an applicability predicate.

    The block names one field and exactly one operator. String
    comparisons ignore case and surrounding whitespace.

    Args:
        condition: e.g. ``{"field": "homebound_status", "equals": "qualified"}``

    Returns:
        Tuple of (predicate, field path the condition reads)

    Raises:
        ValueError: If the block is malformed
    """
    if not isinstance(condition, Mapping):
        raise ValueError("'when' must be a mapping")

    field_path = condition.get("field")
    if not isinstance(field_path, str) or not field_path:
        raise ValueError("'when' requires a 'field'")

    operators = [op for op in CONDITION_OPERATORS if op in condition]
    unknown = set(condition) - {"field", *CONDITION_OPERATORS}
    if unknown:
        raise ValueError(f"'when' has unknown keys: {sorted(unknown)}")
    if len(operators) != 1:
        raise ValueError(
            f"'when' needs exactly one of {', '.join(CONDITION_OPERATORS)}"
        )

    operator = operators[0]
    operand = condition[operator]

    if operator in ("in", "not_in"):
        if isinstance(operand, (str, bytes)) or not isinstance(operand, Iterable):
            raise ValueError(f"'{operator}' expects a list of values")
        values = frozenset(_normalize(v) for v in operand)

        if operator == "in":
            def predicate(record: PatientRecord, as_of: date) -> bool:
                return _normalize(resolve_field(record, field_path)) in values
        else:
            def predicate(record: PatientRecord, as_of: date) -> bool:
                return _normalize(resolve_field(record, field_path)) not in values
    else:
        expected = _normalize(operand)

        if operator == "equals":
            def predicate(record: PatientRecord, as_of: date) -> bool:
                return _normalize(resolve_field(record, field_path)) == expected
        else:
            def predicate(record: PatientRecord, as_of: date) -> bool:
                return _normalize(resolve_field(record, field_path)) != expected

    return predicate, field_path
