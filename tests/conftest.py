"""Shared fixtures for the patient validation tests."""

from datetime import date, datetime, timezone

import pytest

from patient_validation.config.settings import DEFAULT_RULES_PATH
from patient_validation.validation.rule_catalog import RuleCatalog
from patient_validation.validation.validation_engine import PatientValidationEngine


AS_OF = date(2025, 10, 6)
VALIDATED_AT = datetime(2025, 10, 6, 10, 30, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def catalog() -> RuleCatalog:
    """The bundled rule catalog."""
    return RuleCatalog.from_yaml(DEFAULT_RULES_PATH)


@pytest.fixture
def engine(catalog) -> PatientValidationEngine:
    """Engine over the bundled catalog, without a result cache."""
    return PatientValidationEngine(catalog)


@pytest.fixture
def ahmed() -> dict:
    """Registration with every blocking field filled in."""
    return {
        "patient_id": "PAT-001",
        "name_en": "Ahmed Al Mansoori",
        "emirates_id": "784-1990-1234567-1",
        "date_of_birth": "1990-05-15",
        "phone_number": "+971 50 123 4567",
        "nationality": "UAE",
        "insurance_provider": "Daman",
        "insurance_type": "private",
        "homebound_status": "pending_assessment",
    }


@pytest.fixture
def minimal_catalog_data() -> dict:
    """Smallest valid catalog document."""
    return {
        "categories": {
            "IdentityVerification": {"description": "Identity"},
            "SupplementaryInformation": {"optional": True},
        },
        "rules": [
            {
                "id": "name_en_required",
                "field": "name_en",
                "kind": "required",
                "category": "IdentityVerification",
                "message": "{field} is required",
            },
        ],
    }
