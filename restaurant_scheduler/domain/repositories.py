"""Repository classes for stored schedules."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import ScheduleAssignment, ScheduleConflict, ScheduleWarning, WeeklySchedule
from .tables import AssignmentRecord, ConflictRecord, ScheduleRecord, WarningRecord


def record_to_schedule(record: ScheduleRecord) -> WeeklySchedule:
    return WeeklySchedule(
        week_start=record.week_start,
        assignments=[
            ScheduleAssignment(
                shift_id=a.shift_id,
                employee_id=a.employee_id,
                date=a.date,
                start_time=a.start_time,
                end_time=a.end_time,
            )
            for a in record.assignments
        ],
        conflicts=[
            ScheduleConflict(type=c.type, shift_id=c.shift_id, date=c.date, message=c.message)
            for c in record.conflicts
        ],
        warnings=[
            ScheduleWarning(type=w.type, message=w.message, employee_id=w.employee_id)
            for w in record.warnings
        ],
    )


class ScheduleRepository:
    """Draft/published schedule storage, one record per week."""

    @staticmethod
    def get_record(session: Session, week_start: date) -> Optional[ScheduleRecord]:
        return session.query(ScheduleRecord).filter(ScheduleRecord.week_start == week_start).first()

    @staticmethod
    def get_by_week(session: Session, week_start: date) -> Optional[WeeklySchedule]:
        """Get the stored schedule for a week, or None."""
        record = ScheduleRepository.get_record(session, week_start)
        return record_to_schedule(record) if record else None

    @staticmethod
    def get_status(session: Session, week_start: date) -> Optional[str]:
        record = ScheduleRepository.get_record(session, week_start)
        return record.status if record else None

    @staticmethod
    def list_weeks(session: Session) -> List[date]:
        rows = session.query(ScheduleRecord.week_start).order_by(ScheduleRecord.week_start).all()
        return [row[0] for row in rows]

    @staticmethod
    def save(session: Session, schedule: WeeklySchedule, status: str = "draft") -> ScheduleRecord:
        """
        Store a schedule for its week, replacing any previous one (last write wins).

        Args:
            session: Database session
            schedule: Generated WeeklySchedule
            status: "draft" or "published"

        Returns:
            The persisted ScheduleRecord
        """
        if status not in ("draft", "published"):
            raise ValueError(f"Unknown schedule status: {status}")

        previous = ScheduleRepository.get_record(session, schedule.week_start)
        if previous is not None:
            # Replace within the same transaction as the insert
            session.delete(previous)
            session.flush()
        record = ScheduleRecord(week_start=schedule.week_start, status=status)
        if status == "published":
            record.published_at = datetime.now(timezone.utc)
        record.assignments = [
            AssignmentRecord(
                shift_id=a.shift_id,
                employee_id=a.employee_id,
                date=a.date,
                start_time=a.start_time,
                end_time=a.end_time,
            )
            for a in schedule.assignments
        ]
        record.conflicts = [
            ConflictRecord(type=c.type, shift_id=c.shift_id, date=c.date, message=c.message)
            for c in schedule.conflicts
        ]
        record.warnings = [
            WarningRecord(type=w.type, message=w.message, employee_id=w.employee_id)
            for w in schedule.warnings
        ]
        session.add(record)
        try:
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
        session.refresh(record)
        return record

    @staticmethod
    def publish(session: Session, week_start: date) -> ScheduleRecord:
        """Mark a stored week as published. Raises ValueError if nothing is stored."""
        record = ScheduleRepository.get_record(session, week_start)
        if record is None:
            raise ValueError(f"No stored schedule for week of {week_start.isoformat()}")
        record.status = "published"
        record.published_at = datetime.now(timezone.utc)
        session.commit()
        return record

    @staticmethod
    def delete_by_week(session: Session, week_start: date) -> int:
        """Delete the stored schedule for a week. Returns number of deleted schedules."""
        record = ScheduleRepository.get_record(session, week_start)
        if record is None:
            return 0
        session.delete(record)
        session.commit()
        return 1
