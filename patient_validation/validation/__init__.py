"""
Validation Module

Validates patient demographics records against the rule catalog
declared in patient_rules.yaml.

Components:
- rule_catalog.py: Loads and compiles rules from YAML
- predicates.py: Named cross-field checks and applicability conditions
- field_evaluator.py: Applies one rule to one record
- validator.py: Runs the whole catalog against a record
- scorer.py: Completeness percentage and compliance flags
- result_cache.py: Content-hash result cache
- validation_engine.py: Single-record entry point
"""

from .rule_catalog import (
    RuleCatalog,
    Rule,
    RuleDefinition,
    CategoryDefinition,
    compile_rule,
    load_default_catalog,
)
from .predicates import CHECK_REGISTRY, register_check, build_condition
from .field_evaluator import evaluate_rule
from .validator import Validator, RawValidation
from .scorer import Scorer
from .result_cache import ResultCache
from .validation_engine import PatientValidationEngine, build_engine

__all__ = [
    # Main components
    "PatientValidationEngine",
    "build_engine",
    "RuleCatalog",
    "load_default_catalog",
    "Validator",
    "RawValidation",
    "Scorer",
    "ResultCache",

    # Rules
    "Rule",
    "RuleDefinition",
    "CategoryDefinition",
    "compile_rule",
    "evaluate_rule",
    "CHECK_REGISTRY",
    "register_check",
    "build_condition",
]
