import logging
import os
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import database
import directory
import session as donor_session
from errors import DuplicatePhone, NotFound, StoreUnavailable, ValidationError
from links import contact_links, request_links
from schemas import (
    AvailabilityUpdate,
    ContactLinks,
    DashboardView,
    DirectoryStats,
    Donor,
    DonorProfileUpdate,
    DonorRegistration,
    EmergencyRequest,
    EmergencyRequestCreate,
    LoginRequest,
    RegistrationResult,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(levelname)s %(asctime)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="BloodLink Donor Directory API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------- Error responses -----------------

@app.exception_handler(ValidationError)
async def validation_failed(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message, "errors": exc.errors})


@app.exception_handler(DuplicatePhone)
async def duplicate_phone(request: Request, exc: DuplicatePhone):
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(NotFound)
async def not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(StoreUnavailable)
async def store_unavailable(request: Request, exc: StoreUnavailable):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    # transient and permanent store failures look the same to the user
    return JSONResponse(status_code=503, content={"detail": StoreUnavailable.message})

# ---------------- Donor Endpoints -----------------

@app.post("/api/donors", response_model=RegistrationResult, status_code=201)
def register_donor(payload: DonorRegistration):
    return {"id": directory.register_donor(payload)}


@app.get("/api/donors", response_model=List[Donor])
def search_donors(blood_group: Optional[str] = None, city: Optional[str] = None):
    return directory.search_donors(blood_group=blood_group, city=city)


@app.post("/api/donors/login", response_model=DashboardView)
def login(payload: LoginRequest):
    current = donor_session.login(donor_session.Session(), payload.phone)
    return DashboardView(donor=current.donor, requests=donor_session.matching_requests(current))


@app.get("/api/donors/{donor_id}", response_model=Donor)
def get_donor(donor_id: str):
    return directory.get_donor(donor_id)


@app.get("/api/donors/{donor_id}/contact", response_model=ContactLinks)
def donor_contact(donor_id: str):
    return contact_links(directory.get_donor(donor_id))


@app.get("/api/donors/{donor_id}/requests", response_model=List[EmergencyRequest])
def donor_requests(donor_id: str):
    donor = directory.get_donor(donor_id)
    return donor_session.matching_requests(donor_session.Session(donor_id=donor.id, donor=donor))


@app.put("/api/donors/{donor_id}/availability")
def update_availability(donor_id: str, payload: AvailabilityUpdate):
    directory.update_donor_availability(donor_id, payload.available)
    return {"available": payload.available}


@app.put("/api/donors/{donor_id}")
def update_profile(donor_id: str, payload: DonorProfileUpdate):
    return {"updated": directory.update_donor_profile(donor_id, payload)}

# ---------------- Emergency Request Endpoints -----------------

@app.post("/api/requests", status_code=201)
def create_request(payload: EmergencyRequestCreate):
    result = directory.create_emergency_request(payload)
    return {"id": result.id, "matchingDonors": result.matching_donors, "message": result.message}


@app.get("/api/requests", response_model=List[EmergencyRequest])
def list_requests(blood_group: Optional[str] = None):
    if blood_group:
        return directory.list_requests_matching_blood_group(blood_group)
    return directory.list_emergency_requests()


@app.get("/api/requests/{request_id}/contact", response_model=ContactLinks)
def request_contact(request_id: str, as_donor: bool = False):
    return request_links(directory.get_emergency_request(request_id), as_donor=as_donor)


@app.delete("/api/requests/{request_id}")
def resolve_request(request_id: str):
    directory.resolve_emergency_request(request_id)
    return {"status": "resolved"}

# ---------------- Stats & Health -----------------

@app.get("/api/stats", response_model=DirectoryStats)
def stats():
    return directory.directory_stats()


@app.get("/")
def read_root():
    return {"message": "BloodLink Donor Directory API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Connected & Working"
            response["database_name"] = getattr(database.db, 'name', '✅ Connected')
            response["connection_status"] = "Connected"
            response["collections"] = database.db.list_collection_names()[:10]
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
