"""SQLAlchemy tables for stored draft and published schedules."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all tables."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleRecord(Base):
    """One stored schedule per week; status is ``draft`` or ``published``."""

    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    week_start = Column(Date, nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="draft")
    saved_at = Column(DateTime, nullable=False, default=_utcnow)
    published_at = Column(DateTime, nullable=True)

    assignments = relationship(
        "AssignmentRecord", back_populates="schedule", cascade="all, delete-orphan", order_by="AssignmentRecord.id"
    )
    conflicts = relationship(
        "ConflictRecord", back_populates="schedule", cascade="all, delete-orphan", order_by="ConflictRecord.id"
    )
    warnings = relationship(
        "WarningRecord", back_populates="schedule", cascade="all, delete-orphan", order_by="WarningRecord.id"
    )

    def __repr__(self) -> str:
        return f"<ScheduleRecord(week={self.week_start}, status='{self.status}')>"


class AssignmentRecord(Base):
    __tablename__ = "schedule_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), nullable=False)
    shift_id = Column(String(120), nullable=False)
    employee_id = Column(String(64), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM

    schedule = relationship("ScheduleRecord", back_populates="assignments")

    def __repr__(self) -> str:
        return f"<AssignmentRecord(shift='{self.shift_id}', emp='{self.employee_id}', date={self.date})>"


class ConflictRecord(Base):
    __tablename__ = "schedule_conflicts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), nullable=False)
    type = Column(String(32), nullable=False)
    shift_id = Column(String(120), nullable=False)
    date = Column(Date, nullable=False)
    message = Column(Text, nullable=False)

    schedule = relationship("ScheduleRecord", back_populates="conflicts")


class WarningRecord(Base):
    __tablename__ = "schedule_warnings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), nullable=False)
    type = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    employee_id = Column(String(64), nullable=True)

    schedule = relationship("ScheduleRecord", back_populates="warnings")
