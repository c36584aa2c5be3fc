"""
Database Models
SQLAlchemy ORM models for DoseTrack
"""

from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, ForeignKey, Text, Date, Enum, Index, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from database import Base
from tools.schedule_types import DoseAction, TimePolicy, AnchorType


def utcnow() -> datetime:
    """Naive UTC timestamp, the storage convention for every DateTime column"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ==================== MODELS ====================

class Profile(Base):
    """A person whose doses are tracked, with routine times for anchors"""
    __tablename__ = "profiles"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    timezone = Column(String(50), default="UTC")
    
    # Routine anchor base times ("HH:mm"); unset means the anchor is not configured
    wake_time = Column(String(5))
    breakfast_time = Column(String(5))
    lunch_time = Column(String(5))
    dinner_time = Column(String(5))
    bed_time = Column(String(5))
    
    # Guardian mode
    guardian_mode_enabled = Column(Boolean, default=False)
    guardian_follow_up_minutes = Column(Integer)
    
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    
    # Relationships
    medications = relationship("Medication", back_populates="profile", cascade="all, delete-orphan")
    schedules = relationship("MedicationSchedule", back_populates="profile", cascade="all, delete-orphan")


class Medication(Base):
    """A medication or supplement item"""
    __tablename__ = "medications"
    
    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    
    name = Column(String(255), nullable=False)
    form = Column(String(50), default="tablet")  # tablet, capsule, syrup, drops, ...
    strength = Column(String(50))
    unit = Column(String(20))
    notes = Column(Text)
    
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    
    # Relationships
    profile = relationship("Profile", back_populates="medications")
    schedules = relationship("MedicationSchedule", back_populates="medication", cascade="all, delete-orphan")
    inventory = relationship("InventoryItem", back_populates="medication", uselist=False, cascade="all, delete-orphan")


class MedicationSchedule(Base):
    """Recurrence rule for one medication; the scheme is stored as tagged JSON"""
    __tablename__ = "medication_schedules"
    
    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=False)
    medication_id = Column(Integer, ForeignKey("medications.id"), nullable=False)
    
    # {"type": "daily", "timesPerDay": 2, "times": ["08:00", "20:00"]}, ...
    scheme = Column(JSON, nullable=False)
    dose_amount = Column(Float, default=1.0)
    
    # Optional routine anchor overriding explicit times
    anchor_type = Column(Enum(AnchorType))
    anchor_offset_minutes = Column(Integer, default=0)
    
    start_date = Column(Date)
    end_date = Column(Date)
    grace_window_minutes = Column(Integer, default=60)
    time_policy = Column(Enum(TimePolicy), default=TimePolicy.LOCAL_TIME)
    
    enabled = Column(Boolean, default=True)
    is_paused = Column(Boolean, default=False)
    
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    
    # Relationships
    profile = relationship("Profile", back_populates="schedules")
    medication = relationship("Medication", back_populates="schedules")
    
    __table_args__ = (
        Index("ix_medication_schedules_profile_active", "profile_id", "enabled", "is_paused"),
    )


class DoseLog(Base):
    """Append-only dose action log"""
    __tablename__ = "dose_logs"
    
    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(Integer, ForeignKey("profiles.id"))
    medication_id = Column(Integer, ForeignKey("medications.id"), nullable=False)
    schedule_id = Column(Integer)  # Not a foreign key: history outlives schedule edits
    
    action = Column(Enum(DoseAction), nullable=False)
    scheduled_for = Column(DateTime)  # Original planned time, stable across postponements
    logged_at = Column(DateTime, nullable=False, default=utcnow)
    snooze_until = Column(DateTime)
    grace_window_minutes = Column(Integer)
    
    reason = Column(String(100))
    note = Column(Text)
    target_id = Column(Integer)  # Entry reversed by an "undone" action
    units_deducted = Column(Float)  # Inventory decremented by a "taken" action
    
    __table_args__ = (
        Index("ix_dose_logs_medication_scheduled", "medication_id", "scheduled_for"),
        Index("ix_dose_logs_profile_logged", "profile_id", "logged_at"),
    )


class InventoryItem(Base):
    """Stock counter for a medication"""
    __tablename__ = "inventory"
    
    id = Column(Integer, primary_key=True, index=True)
    medication_id = Column(Integer, ForeignKey("medications.id"), nullable=False, unique=True)
    
    remaining_units = Column(Float, nullable=False, default=0)
    low_threshold = Column(Float, default=0)
    unit_label = Column(String(20), default="units")
    
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    
    medication = relationship("Medication", back_populates="inventory")
