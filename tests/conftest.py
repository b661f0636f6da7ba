"""
Global test fixtures for pytest.

Every test gets a fresh in-memory MongoDB (mongomock) patched in as the
Directory Store, so no running database is needed.
"""
import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from schemas import DonorRegistration, EmergencyRequestCreate


@pytest.fixture
def store(monkeypatch):
    """Empty in-memory database installed as ``database.db``."""
    db = mongomock.MongoClient()["bloodlink_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture
def api_client(store):
    from main import app

    return TestClient(app)


@pytest.fixture
def make_donor():
    """Factory for valid registration payloads."""
    def _make(**overrides):
        data = {
            "name": "Asha Patil",
            "blood_group": "O+",
            "phone": "9876543210",
            "email": "asha@example.com",
            "city": "pune",
            "area": "Kothrud",
        }
        data.update(overrides)
        return DonorRegistration(**data)
    return _make


@pytest.fixture
def make_request():
    """Factory for valid emergency request payloads."""
    def _make(**overrides):
        data = {
            "patient_name": "Ravi Kumar",
            "blood_group": "O+",
            "hospital": "Ruby Hall Clinic",
            "city": "Pune",
            "contact_number": "+91 98220 12345",
            "urgency": "critical",
            "notes": "",
        }
        data.update(overrides)
        return EmergencyRequestCreate(**data)
    return _make
