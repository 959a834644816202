from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


BLOOD_TYPES = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")


class MedicalId(BaseModel):
    """Emergency medical identification record.

    Any user may create one; only its creator or an admin may delete it.
    """

    id: str
    full_name: str
    date_of_birth: date
    blood_type: str
    allergies: Optional[str] = None
    medications: Optional[str] = None
    medical_conditions: Optional[str] = None
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class MedicalIdDraft(BaseModel):
    full_name: str = ""
    date_of_birth: str = ""
    blood_type: str = ""
    allergies: str = ""
    medications: str = ""
    medical_conditions: str = ""
    emergency_contact_name: str = ""
    emergency_contact_phone: str = ""
