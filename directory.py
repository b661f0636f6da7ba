"""
Donor directory and emergency request queries.

Every function takes plain inputs, runs at most a couple of equality-filtered
reads/writes against the store and returns schema objects or raises one of the
failures in errors.py. City names are normalized both when written and when
used as a filter, because the store compares strings exactly.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId

import database
from database import DONORS, EMERGENCY_REQUESTS, store_operation
from errors import DuplicatePhone, NotFound, ValidationError
from matching import count_available_donors
from schemas import (
    BLOOD_GROUPS,
    URGENCIES,
    DirectoryStats,
    Donor,
    DonorProfileUpdate,
    DonorRegistration,
    EmergencyRequest,
    EmergencyRequestCreate,
    EmergencyRequestResult,
)

logger = logging.getLogger(__name__)

MIN_PHONE_LENGTH = 10
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# ---------------- Utility -----------------

def normalize_city(city: Optional[str]) -> str:
    """Trim, then upper-case the first letter and lower-case the rest."""
    city = (city or "").strip()
    return city[:1].title() + city[1:].lower()


def oid(id_str: str) -> ObjectId:
    # an id that cannot be an ObjectId cannot match any record either
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise NotFound(f"No record with id {id_str!r}")


def _created_key(doc: dict) -> float:
    created = doc.get("createdAt")
    if not isinstance(created, datetime):
        return 0.0
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.timestamp()


def _check_blood_group(blood_group: str, errors: Dict[str, str], message: str = "Please select a blood group"):
    if blood_group not in BLOOD_GROUPS:
        errors["bloodGroup"] = message


def _require_known_blood_group(blood_group: str):
    errors = {}
    _check_blood_group(blood_group, errors, "Unknown blood group")
    if errors:
        raise ValidationError(errors)


# ---------------- Donors -----------------

def validate_registration(data: DonorRegistration) -> DonorRegistration:
    data = data.model_copy(update={
        "name": data.name.strip(),
        "phone": data.phone.strip(),
        "email": data.email.strip(),
        "city": data.city.strip(),
        "area": data.area.strip(),
    })
    errors = {}
    if not data.name:
        errors["name"] = "Full name is required"
    _check_blood_group(data.blood_group, errors)
    if len(data.phone) < MIN_PHONE_LENGTH:
        errors["phone"] = "Valid phone number is required (min 10 digits)"
    if data.email and not EMAIL_RE.match(data.email):
        errors["email"] = "Please enter a valid email"
    if not data.city:
        errors["city"] = "City is required"
    if errors:
        raise ValidationError(errors)
    return data


@store_operation
def register_donor(data: DonorRegistration) -> str:
    """
    Add a donor and return the new id.

    The phone check and the insert are two separate store calls, so two
    registrations racing with the same phone can both get through. The check
    only stops a sequential re-registration.
    """
    data = validate_registration(data)

    if database.collection(DONORS).find_one({"phone": data.phone}) is not None:
        logger.warning("Registration rejected, phone already registered")
        raise DuplicatePhone()

    donor = Donor(
        name=data.name,
        blood_group=data.blood_group,
        phone=data.phone,
        email=data.email or "",
        city=normalize_city(data.city),
        area=data.area or "",
        lat=data.lat,
        lng=data.lng,
        available=True,
    )
    donor_id = database.create_document(DONORS, donor.model_dump(by_alias=True, exclude={"id", "created_at"}))
    logger.info("Registered %s donor %s in %s", donor.blood_group, donor_id, donor.city)
    return donor_id


@store_operation
def find_donor_by_phone(phone: str) -> Donor:
    # with duplicate phones in the store, whichever the store returns first wins
    doc = database.collection(DONORS).find_one({"phone": (phone or "").strip()})
    if doc is None:
        raise NotFound("No donor found with this phone number. Please register first.")
    return Donor.from_document(doc)


@store_operation
def get_donor(donor_id: str) -> Donor:
    doc = database.collection(DONORS).find_one({"_id": oid(donor_id)})
    if doc is None:
        raise NotFound("Donor not found")
    return Donor.from_document(doc)


@store_operation
def search_donors(blood_group: Optional[str] = None, city: Optional[str] = None) -> List[Donor]:
    query = {}
    if blood_group:
        _require_known_blood_group(blood_group)
        query["bloodGroup"] = blood_group
    if city and city.strip():
        query["city"] = normalize_city(city)
    return [Donor.from_document(d) for d in database.get_documents(DONORS, query)]


@store_operation
def update_donor_availability(donor_id: str, available: bool) -> None:
    res = database.collection(DONORS).update_one({"_id": oid(donor_id)}, {"$set": {"available": bool(available)}})
    if res.matched_count == 0:
        raise NotFound("Donor not found")
    logger.info("Donor %s is now %s", donor_id, "available" if available else "busy")


@store_operation
def update_donor_profile(donor_id: str, update: DonorProfileUpdate) -> dict:
    """Save the editable profile fields and return what was written."""
    name = update.name.strip()
    if not name:
        raise ValidationError({"name": "Name cannot be empty"})
    city = update.city.strip()
    changes = {
        "name": name,
        "email": update.email.strip(),
        "city": normalize_city(city) if city else "",
        "area": update.area.strip(),
    }
    res = database.collection(DONORS).update_one({"_id": oid(donor_id)}, {"$set": changes})
    if res.matched_count == 0:
        raise NotFound("Donor not found")
    logger.info("Updated profile of donor %s", donor_id)
    return changes


# ---------------- Emergency requests -----------------

def validate_emergency_request(data: EmergencyRequestCreate) -> EmergencyRequestCreate:
    data = data.model_copy(update={
        "patient_name": data.patient_name.strip(),
        "hospital": data.hospital.strip(),
        "city": data.city.strip(),
        "contact_number": data.contact_number.strip(),
        "notes": data.notes.strip(),
    })
    errors = {}
    if not data.patient_name:
        errors["patientName"] = "Patient name is required"
    _check_blood_group(data.blood_group, errors)
    if not data.hospital:
        errors["hospital"] = "Hospital name is required"
    if not data.city:
        errors["city"] = "City is required"
    if len(data.contact_number) < MIN_PHONE_LENGTH:
        errors["contactNumber"] = "Valid contact number is required"
    if data.urgency not in URGENCIES:
        errors["urgency"] = "Urgency must be critical, urgent or normal"
    if errors:
        raise ValidationError(errors)
    return data


@store_operation
def create_emergency_request(data: EmergencyRequestCreate) -> EmergencyRequestResult:
    data = validate_emergency_request(data)

    matches = count_available_donors(data.blood_group)
    request = EmergencyRequest(
        patient_name=data.patient_name,
        blood_group=data.blood_group,
        hospital=data.hospital,
        city=normalize_city(data.city),
        contact_number=data.contact_number,
        urgency=data.urgency,
        notes=data.notes or "",
        status="active",
        matching_donors=matches,
    )
    request_id = database.create_document(
        EMERGENCY_REQUESTS, request.model_dump(by_alias=True, exclude={"id", "created_at"})
    )
    logger.info("Emergency request %s for %s created, %d matching donor(s)", request_id, request.blood_group, matches)
    return EmergencyRequestResult(id=request_id, matching_donors=matches)


@store_operation
def list_emergency_requests() -> List[EmergencyRequest]:
    docs = database.get_documents(EMERGENCY_REQUESTS)
    docs.sort(key=_created_key, reverse=True)
    return [EmergencyRequest.from_document(d) for d in docs]


@store_operation
def get_emergency_request(request_id: str) -> EmergencyRequest:
    doc = database.collection(EMERGENCY_REQUESTS).find_one({"_id": oid(request_id)})
    if doc is None:
        raise NotFound("Emergency request not found")
    return EmergencyRequest.from_document(doc)


@store_operation
def list_requests_matching_blood_group(blood_group: str) -> List[EmergencyRequest]:
    _require_known_blood_group(blood_group)
    docs = database.get_documents(EMERGENCY_REQUESTS, {"bloodGroup": blood_group})
    return [EmergencyRequest.from_document(d) for d in docs]


@store_operation
def resolve_emergency_request(request_id: str) -> None:
    """Resolving deletes the request outright; there is no archive."""
    res = database.collection(EMERGENCY_REQUESTS).delete_one({"_id": oid(request_id)})
    if res.deleted_count == 0:
        raise NotFound("Emergency request not found")
    logger.info("Emergency request %s resolved", request_id)


# ---------------- Stats -----------------

@store_operation
def directory_stats() -> DirectoryStats:
    cities = set()
    for doc in database.collection(DONORS).find({}, {"city": 1}):
        city = doc.get("city")
        if isinstance(city, str) and city.strip():
            cities.add(city.strip().lower())
    return DirectoryStats(
        donors=database.collection(DONORS).count_documents({}),
        requests=database.collection(EMERGENCY_REQUESTS).count_documents({}),
        cities=len(cities),
    )
