"""
Patient Record Snapshot Model

Read-only view of a patient demographics record as returned by the
record store. The engine never mutates it.
"""

import hashlib
import json
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PatientRecord(BaseModel):
    """Snapshot of one patient's demographics, contact and insurance data"""

    model_config = ConfigDict(frozen=True, extra="allow")

    patient_id: Optional[str] = Field(None, description="Record store identifier")

    # Identity
    name_en: Optional[str] = Field(None, description="Legal name (English)")
    name_ar: Optional[str] = Field(None, description="Legal name (Arabic)")
    emirates_id: Optional[str] = Field(None, description="Emirates ID number")
    date_of_birth: Optional[str] = Field(None, description="Date of birth (YYYY-MM-DD)")
    gender: Optional[str] = Field(None, description="male / female")
    nationality: Optional[str] = Field(None, description="Nationality")
    identity_verified: Optional[bool] = Field(
        None, description="Emirates ID verified against the government registry"
    )

    # Contact
    phone_number: Optional[str] = Field(None, description="Primary phone (+971 ...)")
    email: Optional[str] = Field(None, description="Email address")
    address: Optional[Union[str, Dict[str, Any]]] = Field(
        None, description="Home address, free text or structured"
    )
    emergency_contact_name: Optional[str] = Field(None, description="Emergency contact name")
    emergency_contact_phone: Optional[str] = Field(None, description="Emergency contact phone")
    language_preference: Optional[str] = Field(None, description="Preferred language")
    interpreter_required: Optional[bool] = Field(None, description="Interpreter needed")

    # Insurance
    insurance_provider: Optional[str] = Field(None, description="Payer, e.g. Daman")
    insurance_type: Optional[str] = Field(None, description="government / private / self_pay")
    policy_number: Optional[str] = Field(None, description="Policy number")
    insurance_expiry_date: Optional[str] = Field(None, description="Policy expiry (YYYY-MM-DD)")
    thiqa_card_number: Optional[str] = Field(None, description="Thiqa card number")

    # Clinical / administrative
    homebound_status: Optional[str] = Field(None, description="DOH homebound classification")
    homebound_justification: Optional[str] = Field(
        None, description="Clinical justification for homebound status"
    )
    assessment_date: Optional[str] = Field(None, description="Homebound assessment date")
    assessed_by: Optional[str] = Field(None, description="Assessing clinician")

    @field_validator(
        "date_of_birth", "insurance_expiry_date", "assessment_date", mode="before"
    )
    @classmethod
    def _dates_as_iso_strings(cls, v: Any) -> Any:
        # Stores may hand back date objects; rules work on the string form
        if isinstance(v, datetime):
            return v.date().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        return v

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PatientRecord":
        """
        Build a record from a plain mapping (e.g. a record store row).

        Raises:
            pydantic.ValidationError: If the mapping cannot be coerced
        """
        return cls.model_validate(dict(data))

    def content_hash(self) -> str:
        """
        Stable hash of the record content.

        Extra store fields of any type (binary blobs, custom objects) are
        hashed through their repr.

        Returns:
            SHA-256 hex digest of the canonical JSON form
        """
        payload = json.dumps(
            self.model_dump(),
            sort_keys=True,
            ensure_ascii=False,
            default=repr
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def is_known_field(path: str) -> bool:
    """
    Check that the root of a dotted field path is a PatientRecord field.

    Args:
        path: Field path such as "emirates_id" or "address.city"

    Returns:
        True if the root segment is a declared field
    """
    if not path or not isinstance(path, str):
        return False
    root = path.split(".", 1)[0]
    return root in PatientRecord.model_fields


def resolve_field(record: PatientRecord, path: str) -> Any:
    """
    Resolve a dotted field path against a record.

    Missing segments resolve to None; anything that is neither a mapping
    nor an object with the attribute ends the walk with None.

    Args:
        record: Record snapshot
        path: Dotted field path

    Returns:
        The value at the path, or None
    """
    value: Any = record
    for segment in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(segment)
        else:
            value = getattr(value, segment, None)
    return value
