# modules/locations/schemas.py
from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import AssignmentStatus, AssignmentType, BeatShift, LocationType


# =========================================================
# Locations
# =========================================================
class LocationBase(BaseModel):
    location_name: str = Field(min_length=1, max_length=200)
    location_code: Optional[str] = None
    city: str
    state: str
    lga: Optional[str] = None
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_type: LocationType = LocationType.CLIENT_SITE
    is_active: bool = True
    contact_person: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None


class LocationCreate(LocationBase):
    pass


class LocationUpdate(BaseModel):
    location_name: Optional[str] = None
    location_code: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    lga: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_type: Optional[LocationType] = None
    is_active: Optional[bool] = None
    contact_person: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None


class LocationInDB(LocationBase):
    model_config = ConfigDict(from_attributes=True)
    id: int
    total_beats: int = 0
    created_at: datetime


# =========================================================
# Beats
# =========================================================
class BeatBase(BaseModel):
    beat_code: str = Field(min_length=1, max_length=40)
    beat_name: str = Field(min_length=1, max_length=200)
    location_id: int
    description: Optional[str] = None
    number_of_operators: int = Field(default=1, ge=1)
    shift_type: BeatShift = BeatShift.DAY
    supervisor_id: Optional[int] = None
    is_active: bool = True


class BeatCreate(BeatBase):
    pass


class BeatUpdate(BaseModel):
    beat_name: Optional[str] = None
    description: Optional[str] = None
    number_of_operators: Optional[int] = Field(default=None, ge=1)
    shift_type: Optional[BeatShift] = None
    supervisor_id: Optional[int] = None
    is_active: Optional[bool] = None


class BeatInDB(BeatBase):
    model_config = ConfigDict(from_attributes=True)
    id: int


# =========================================================
# Guard assignments
# =========================================================
class AssignmentCreate(BaseModel):
    operator_id: int
    beat_id: int
    supervisor_id: Optional[int] = None
    assignment_type: AssignmentType = AssignmentType.PERMANENT
    shift_type: BeatShift = BeatShift.DAY
    start_date: date
    end_date: Optional[date] = None
    special_instructions: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _check_period(self):
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class AssignmentEnd(BaseModel):
    transferred: bool = False
    end_date: Optional[date] = None


class AssignmentInDB(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    operator_id: int
    beat_id: int
    location_id: int
    supervisor_id: Optional[int] = None
    assignment_type: AssignmentType
    shift_type: BeatShift
    start_date: date
    end_date: Optional[date] = None
    status: AssignmentStatus
    assigned_by_id: Optional[int] = None
    approved_by_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    ended_at: Optional[datetime] = None
    special_instructions: Optional[str] = None
    created_at: datetime
