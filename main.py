import logging
import os
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from typing import Any, Dict, List

from database import DocumentStore, get_store
from pickups import PickupService
from schemas import PickupProjection, RefreshResult, ReleaseResult, StopStats
from stops import StopService
from waste_types import WASTE_TYPES

app = FastAPI(title="Waste Pickup API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_pickup_service(store: DocumentStore = Depends(get_store)) -> PickupService:
    return PickupService(store)


def get_stop_service(store: DocumentStore = Depends(get_store)) -> StopService:
    return StopService(store)


@app.get("/")
def read_root():
    return {"message": "Waste Pickup API running"}


@app.get("/schema")
def get_schema():
    # Expose schemas to the database viewer
    from schemas import Bin, User, Schedule, Stop
    return {
        "bin": Bin.model_json_schema(),
        "user": User.model_json_schema(),
        "schedule": Schedule.model_json_schema(),
        "stop": Stop.model_json_schema(),
    }


@app.get("/waste-types")
def list_waste_types():
    return [{"id": key, **info} for key, info in WASTE_TYPES.items()]


@app.get("/users/{user_id}/pickups", response_model=List[PickupProjection])
def upcoming_pickups(user_id: str, service: PickupService = Depends(get_pickup_service)):
    return service.get_upcoming_pickups(user_id)


@app.post("/users/{user_id}/pickups/refresh", response_model=RefreshResult)
def refresh_pickups(user_id: str, service: PickupService = Depends(get_pickup_service)):
    # Failures are reported in the body; callers check `success`
    return service.refresh_pickup_schedules(user_id)


@app.get("/schedules/{schedule_id}/stops", response_model=List[Dict[str, Any]])
def list_stops(schedule_id: str, service: StopService = Depends(get_stop_service)):
    return service.get_stops_by_schedule(schedule_id)


@app.get("/schedules/{schedule_id}/stops/stats", response_model=StopStats)
def stop_stats(schedule_id: str, service: StopService = Depends(get_stop_service)):
    return service.get_stop_stats(schedule_id)


@app.post("/bins/{bin_id}/release", response_model=ReleaseResult)
def release_bin(bin_id: str, service: StopService = Depends(get_stop_service)):
    return service.release_bin_stops(bin_id)


@app.get("/test")
def test_database(store: DocumentStore = Depends(get_store)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "connection_status": "Not Connected",
        "collections": []
    }

    try:
        collections = store.list_collection_names()
        response["collections"] = collections[:10]
        response["connection_status"] = "Connected"
        response["database"] = "✅ Connected & Working"
    except Exception as e:
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"

    return response


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
