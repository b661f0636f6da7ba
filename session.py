"""
Per-session state for the donor dashboard and registration form.

A Session holds the logged-in donor and any GPS coordinates the user chose to
share. It is immutable: every handler takes the current session and returns
the next one, so nothing about one user leaks into another.
"""
import logging
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

import directory
from errors import NotLoggedIn, ValidationError
from schemas import BLOOD_GROUPS, Donor, DonorProfileUpdate, DonorRegistration, EmergencyRequest

logger = logging.getLogger(__name__)


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    donor_id: Optional[str] = None
    donor: Optional[Donor] = None
    lat: Optional[float] = None
    lng: Optional[float] = None

    @property
    def logged_in(self) -> bool:
        return self.donor_id is not None


def _require_login(session: Session) -> Session:
    if not session.logged_in:
        raise NotLoggedIn()
    return session


def capture_location(session: Session, lat: float, lng: float) -> Session:
    return session.model_copy(update={"lat": lat, "lng": lng})


def clear_location(session: Session) -> Session:
    return session.model_copy(update={"lat": None, "lng": None})


def register(session: Session, data: DonorRegistration) -> Tuple[str, Session]:
    """Register with the session's captured coordinates, if any; the capture is cleared afterwards."""
    if session.lat is not None and session.lng is not None:
        data = data.model_copy(update={"lat": session.lat, "lng": session.lng})
    donor_id = directory.register_donor(data)
    return donor_id, clear_location(session)


def login(session: Session, phone: str) -> Session:
    phone = (phone or "").strip()
    if len(phone) < directory.MIN_PHONE_LENGTH:
        raise ValidationError({"phone": "Enter your registered phone number"})
    donor = directory.find_donor_by_phone(phone)
    logger.info("Donor %s logged in", donor.id)
    return session.model_copy(update={"donor_id": donor.id, "donor": donor})


def logout(session: Session) -> Session:
    return Session()


def set_availability(session: Session, available: bool) -> Session:
    _require_login(session)
    directory.update_donor_availability(session.donor_id, available)
    donor = session.donor.model_copy(update={"available": available})
    return session.model_copy(update={"donor": donor})


def save_profile(session: Session, update: DonorProfileUpdate) -> Session:
    _require_login(session)
    changes = directory.update_donor_profile(session.donor_id, update)
    donor = session.donor.model_copy(update=changes)
    return session.model_copy(update={"donor": donor})


def matching_requests(session: Session) -> List[EmergencyRequest]:
    _require_login(session)
    if session.donor.blood_group not in BLOOD_GROUPS:
        return []
    return directory.list_requests_matching_blood_group(session.donor.blood_group)
