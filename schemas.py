"""
Database Schemas

MongoDB collection schemas for the waste pickup service, defined as Pydantic
models. Model name is converted to lowercase for the collection name:
- Bin -> "bin" collection
- User -> "user" collection
- Schedule -> "schedule" collection
- Stop -> "stop" collection

The second half of the module holds the result models returned by the
pickup and stop services.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

ScheduleStatus = Literal["active", "completed", "cancelled"]
StopStatus = Literal["pending", "collected", "skipped", "cancelled"]
StopType = Literal["main", "customer"]
Outcome = Literal["created", "unchanged", "cancelled", "unmatched", "failed"]


class Bin(BaseModel):
    """
    Customer waste bins
    Collection name: "bin"
    """
    user_id: str = Field(..., description="Owning user id")
    bin_code: Optional[str] = Field(None, description="Printed bin code, e.g. 'BIN-PLA-001'")
    category: str = Field(..., description="plastic, paper, organic, glass, metal, electronic, hazardous, general")
    is_active: bool = Field(True, description="Only active bins are scheduled for pickup")


class User(BaseModel):
    """
    Customer accounts
    Collection name: "user"
    """
    display_name: Optional[str] = Field(None, description="Name shown to collectors")
    first_name: Optional[str] = None
    address: Optional[str] = Field(None, description="Pickup address")
    zone: Optional[str] = Field(None, description="Service area code, e.g. 'A'")


class Schedule(BaseModel):
    """
    Collection runs planned by collectors
    Collection name: "schedule"
    """
    zone: str = Field(..., description="Service area code")
    date: datetime = Field(..., description="Collection date (UTC)")
    status: ScheduleStatus = Field("active")
    waste_types: List[str] = Field(default_factory=list, description="Accepted waste type ids")
    time_ranges: List[str] = Field(default_factory=list, description="e.g. '08:00-10:00'")
    total_slots: int = Field(0, ge=0)
    available_slots: int = Field(0, ge=0)
    collector_name: Optional[str] = None
    collector_id: Optional[str] = None


class Stop(BaseModel):
    """
    A bin expected to be serviced on a schedule
    Collection name: "stop"
    """
    schedule_id: str = Field(..., description="Parent schedule id")
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    bin_id: Optional[str] = None
    bin_category: Optional[str] = None
    bin_code: Optional[str] = None
    address: Optional[str] = None
    zone: Optional[str] = None
    type: StopType = Field("customer")
    status: StopStatus = Field("pending")
    collected_at: Optional[datetime] = None
    notes: str = ""


# Service results

class NextPickup(BaseModel):
    schedule_id: str
    date: Optional[datetime] = None
    time_ranges: List[str] = Field(default_factory=list)
    collector_name: str = "Collector"
    zone: Optional[str] = None
    available_slots: int = 0
    waste_types: List[str] = Field(default_factory=list)
    has_stop: bool = False


class PickupProjection(BaseModel):
    bin_id: str
    bin_code: Optional[str] = None
    category: Optional[str] = None
    category_label: Optional[str] = None
    icon: str
    color: str
    has_pickup: bool = False
    next_pickup: Optional[NextPickup] = None


class BinOutcome(BaseModel):
    bin_id: str
    schedule_id: Optional[str] = Field(None, description="Nearest eligible schedule")
    outcome: Outcome
    added: int = 0
    removed: int = 0
    errors: List[str] = Field(default_factory=list)


class RefreshResult(BaseModel):
    success: bool
    added: int = 0
    removed: int = 0
    message: Optional[str] = None
    error: Optional[str] = None
    outcomes: List[BinOutcome] = Field(default_factory=list)


class StopStats(BaseModel):
    total: int = 0
    main_stops: int = 0
    customer_stops: int = 0
    pending: int = 0
    collected: int = 0
    skipped: int = 0
    cancelled: int = 0


class ReleaseResult(BaseModel):
    success: bool
    count: int = 0
    message: Optional[str] = None
    error: Optional[str] = None
