from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import hours_between, isoformat_or_none, parse_iso_datetime
from ..common.validators import parse_enum
from ..core.enums import AttendanceStatus, LocationType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class BreakPeriod:
    start_time: datetime
    end_time: Optional[datetime] = None
    reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def duration_hours(self) -> float:
        """Closed break length in hours; an open break counts as zero."""
        if self.end_time is None:
            return 0.0
        return max(hours_between(self.start_time, self.end_time), 0.0)

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": isoformat_or_none(self.end_time),
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BreakPeriod":
        return cls(
            start_time=parse_iso_datetime(data["start_time"]),
            end_time=parse_iso_datetime(data.get("end_time")),
            reason=data.get("reason"),
        )


@dataclass(frozen=True)
class Location:
    type: LocationType = LocationType.OFFICE
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Location":
        """Accept a location type name, a GPS dict, or nothing (Office).

        GPS coordinates without an explicit type are treated as Remote.
        """

        if payload is None or payload == "":
            return cls()
        if isinstance(payload, str):
            return cls(type=parse_enum(LocationType, payload, "location"))
        if not isinstance(payload, dict):
            raise ValidationError("location must be a type name or an object")

        lat = payload.get("latitude")
        lng = payload.get("longitude")
        try:
            lat = float(lat) if lat is not None else None
            lng = float(lng) if lng is not None else None
        except (TypeError, ValueError):
            raise ValidationError("location coordinates must be numbers")

        has_gps = lat is not None and lng is not None
        default_type = LocationType.REMOTE if has_gps else LocationType.OFFICE
        loc_type = parse_enum(LocationType, payload.get("type"), "location.type", default=default_type)
        address = (payload.get("address") or "").strip() or ("GPS Location" if has_gps else None)
        return cls(type=loc_type, latitude=lat, longitude=lng, address=address)

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"type": self.type.value, "address": self.address}
        if self.latitude is not None and self.longitude is not None:
            data["coordinates"] = {"latitude": self.latitude, "longitude": self.longitude}
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Location":
        if not data:
            return cls()
        coords = data.get("coordinates") or {}
        return cls(
            type=LocationType(data.get("type") or LocationType.OFFICE.value),
            latitude=coords.get("latitude"),
            longitude=coords.get("longitude"),
            address=data.get("address"),
        )


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's daily clock cycle.

    Derived fields (totals, lateness, status) are only ever written by ``calculator.recompute``.
    """

    attendance_id: int
    user_id: int
    work_date: date
    clock_in: datetime
    clock_out: Optional[datetime] = None
    breaks: tuple[BreakPeriod, ...] = ()
    total_worked_hours: float = 0.0
    total_break_time: float = 0.0
    status: AttendanceStatus = AttendanceStatus.PRESENT
    is_late: bool = False
    late_by: int = 0
    location: Location = field(default_factory=Location)
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def open_break(self) -> Optional[BreakPeriod]:
        if self.breaks and self.breaks[-1].is_open:
            return self.breaks[-1]
        return None

    @property
    def is_clocked_out(self) -> bool:
        return self.clock_out is not None

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "user_id": self.user_id,
            "date": self.work_date.isoformat(),
            "clock_in": self.clock_in.isoformat(),
            "clock_out": isoformat_or_none(self.clock_out),
            "breaks": [b.to_dict() for b in self.breaks],
            "total_worked_hours": round(self.total_worked_hours, 2),
            "total_break_time": round(self.total_break_time, 2),
            "status": self.status.value,
            "is_late": self.is_late,
            "late_by": self.late_by,
            "location": self.location.to_dict(),
            "notes": self.notes,
        }


@dataclass(frozen=True)
class AttendanceStats:
    """Read-model for the rolling attendance statistics view."""

    period_days: int
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    total_worked_hours: float
    total_break_time: float
    average_work_hours: float
    average_break_time: float
    attendance_rate: float
    punctuality_rate: float
