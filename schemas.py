"""
Database Schemas

Pydantic models for the two MongoDB collections and for the payloads the API
accepts. Stored documents use the camelCase field names of the
browser client (bloodGroup, createdAt, ...); the models expose snake_case
attributes and map them through aliases:
- Donor -> "donors" collection
- EmergencyRequest -> "emergency_requests" collection
"""

from datetime import datetime
from typing import List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------- Closed value sets -----------------

BloodGroup = Literal[
    "A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"
]

Urgency = Literal["critical", "urgent", "normal"]

BLOOD_GROUPS = get_args(BloodGroup)
URGENCIES = get_args(Urgency)


class Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict):
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)


def _as_text(value):
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_number(value):
    return value if isinstance(value, (int, float)) and not isinstance(value, bool) else None


def _as_timestamp(value):
    return value if isinstance(value, datetime) else None


# ---------------- Stored records -----------------
# The store enforces no schema, so stored records accept whatever a document
# holds and coerce it; the closed value sets are checked on input only.

class Donor(Document):
    """
    Registered blood donor
    Collection: donors
    """
    name: str = ""
    blood_group: str = Field("", alias="bloodGroup")
    phone: str = ""
    email: str = ""
    city: str = Field("", description="Normalized: first letter upper, rest lower")
    area: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None
    # documents written before the toggle existed have no field at all
    available: bool = True
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    coerce_text = field_validator("name", "blood_group", "phone", "email", "city", "area", mode="before")(_as_text)
    coerce_coordinates = field_validator("lat", "lng", mode="before")(_as_number)
    coerce_created = field_validator("created_at", mode="before")(_as_timestamp)

    @field_validator("available", mode="before")
    @classmethod
    def available_unless_false(cls, value):
        return value is not False


class EmergencyRequest(Document):
    """
    Posted need for blood
    Collection: emergency_requests
    """
    patient_name: str = Field("", alias="patientName")
    blood_group: str = Field("", alias="bloodGroup")
    hospital: str = ""
    city: str = ""
    contact_number: str = Field("", alias="contactNumber")
    urgency: str = "urgent"
    notes: str = ""
    status: str = "active"
    matching_donors: int = Field(0, alias="matchingDonors", description="Snapshot taken at creation")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    coerce_text = field_validator(
        "patient_name", "blood_group", "hospital", "city", "contact_number", "urgency", "notes", "status",
        mode="before",
    )(_as_text)
    coerce_created = field_validator("created_at", mode="before")(_as_timestamp)

    @field_validator("matching_donors", mode="before")
    @classmethod
    def count_or_zero(cls, value):
        return value if isinstance(value, int) and not isinstance(value, bool) else 0


# ---------------- Inputs -----------------
# Inputs are loosely typed on purpose so the directory layer can report one
# message per offending field.

class DonorRegistration(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    blood_group: str = Field("", alias="bloodGroup")
    phone: str = ""
    email: str = ""
    city: str = ""
    area: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


class DonorProfileUpdate(BaseModel):
    name: str = ""
    email: str = ""
    city: str = ""
    area: str = ""


class AvailabilityUpdate(BaseModel):
    available: bool


class LoginRequest(BaseModel):
    phone: str


class EmergencyRequestCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    patient_name: str = Field("", alias="patientName")
    blood_group: str = Field("", alias="bloodGroup")
    hospital: str = ""
    city: str = ""
    contact_number: str = Field("", alias="contactNumber")
    urgency: str = "urgent"
    notes: str = ""


# ---------------- Results -----------------

class RegistrationResult(BaseModel):
    id: str


class EmergencyRequestResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    matching_donors: int = Field(..., alias="matchingDonors")

    @property
    def message(self) -> str:
        if self.matching_donors > 0:
            return f"Emergency request sent! {self.matching_donors} matching donor(s) found."
        return "Emergency request created. No matching donors currently available."


class DirectoryStats(BaseModel):
    donors: int
    requests: int
    cities: int


class ContactLinks(BaseModel):
    phone: str
    tel: str
    whatsapp: str


class DashboardView(BaseModel):
    donor: Donor
    requests: List[EmergencyRequest]
