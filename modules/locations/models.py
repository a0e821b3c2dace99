# modules/locations/models.py
from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean, CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from database.base import Base, utcnow


# ----------------- Enums -----------------
class LocationType(str, enum.Enum):
    OFFICE = "OFFICE"
    WAREHOUSE = "WAREHOUSE"
    CLIENT_SITE = "CLIENT_SITE"
    OPERATIONAL_BASE = "OPERATIONAL_BASE"
    OTHER = "OTHER"


class BeatShift(str, enum.Enum):
    DAY = "DAY"
    NIGHT = "NIGHT"
    FULL_DAY = "24_HOURS"
    ROTATING = "ROTATING"


class AssignmentType(str, enum.Enum):
    PERMANENT = "PERMANENT"
    TEMPORARY = "TEMPORARY"
    RELIEF = "RELIEF"


class AssignmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
    ENDED = "ENDED"
    TRANSFERRED = "TRANSFERRED"


# statuses that hold an operator's time
BLOCKING_STATUSES = (AssignmentStatus.PENDING, AssignmentStatus.ACTIVE)


# ----------------- Location -----------------
class Location(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    location_name = Column(String(200), nullable=False)
    location_code = Column(String(40), unique=True, nullable=True)
    city = Column(String(120), nullable=False)
    state = Column(String(120), nullable=False)
    lga = Column(String(120), nullable=True)
    address = Column(Text, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location_type = Column(SAEnum(LocationType, name="location_type"), nullable=False, default=LocationType.CLIENT_SITE)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    total_beats = Column(Integer, nullable=False, default=0)
    contact_person = Column(String(200), nullable=True)
    contact_phone = Column(String(32), nullable=True)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    beats = relationship("Beat", back_populates="location")


# ----------------- Beat (guard post) -----------------
class Beat(Base):
    __tablename__ = "beats"

    id = Column(Integer, primary_key=True, index=True)
    beat_code = Column(String(40), unique=True, nullable=False, index=True)
    beat_name = Column(String(200), nullable=False)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    description = Column(Text, nullable=True)
    number_of_operators = Column(Integer, nullable=False, default=1)
    shift_type = Column(SAEnum(BeatShift, name="beat_shift"), nullable=False, default=BeatShift.DAY)
    supervisor_id = Column(Integer, ForeignKey("supervisors.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    location = relationship("Location", back_populates="beats")


# ----------------- Guard assignment -----------------
class GuardAssignment(Base):
    __tablename__ = "guard_assignments"
    __table_args__ = (
        CheckConstraint("end_date IS NULL OR end_date > start_date", name="ck_guard_assignments_period"),
    )

    id = Column(Integer, primary_key=True, index=True)
    operator_id = Column(Integer, ForeignKey("operators.id"), nullable=False, index=True)
    beat_id = Column(Integer, ForeignKey("beats.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    supervisor_id = Column(Integer, ForeignKey("supervisors.id"), nullable=True)
    assignment_type = Column(SAEnum(AssignmentType, name="assignment_type"), nullable=False, default=AssignmentType.PERMANENT)
    shift_type = Column(SAEnum(BeatShift, name="beat_shift"), nullable=False, default=BeatShift.DAY)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    status = Column(SAEnum(AssignmentStatus, name="assignment_status"), nullable=False, default=AssignmentStatus.PENDING, index=True)

    assigned_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    special_instructions = Column(String(500), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    beat = relationship("Beat")
