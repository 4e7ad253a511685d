"""Community-service hours ledger for the employee report intake.

One `ServiceRecord` draft exists per selected slip row. The ledger enforces the
time-in/time-out rules while the employee edits the draft and derives the
completed/remaining totals shown next to the form.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Union

from mobile.app import config
from mobile.app.api.client import BackendApiClient
from mobile.app.api.schemas import CsReport, CsReportPayload, CsSlip, parse_timestamp
from mobile.app.errors import (
    DurationTooShort,
    IncompleteForm,
    NetworkOrServerError,
    NoTimeIn,
    TimeOutBeforeOrEqualTimeIn,
)
from mobile.app.utils.observability import record_report_submission

logger = logging.getLogger("core.ledger")

SECONDS_PER_HOUR = 60 * 60

NO_TIME_IN_MESSAGE = "Please select Time In first."
TIME_ORDER_MESSAGE = "Time Out must be later than Time In."
DURATION_MESSAGE = "Time difference must be at least 1 hour."
INCOMPLETE_FORM_MESSAGE = "All fields are required."


class ServiceStatus(str, Enum):
    COMPLETE = "COMPLETE"
    INCOMPLETE = "INCOMPLETE"
    UNSET = "UNSET"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ServiceStatus":
        if not value:
            return cls.UNSET
        normalized = value.strip().upper()
        for status in (cls.COMPLETE, cls.INCOMPLETE):
            if normalized == status.value:
                return status
        return cls.UNSET


@dataclass
class ServiceRecord:
    slip_id: Optional[Union[int, str]] = None
    student_number: str = ""
    full_name: str = ""
    section: str = ""
    cluster_head: str = ""
    area_of_service: str = ""
    reason_for_service: str = ""
    required_hours: float = 0
    required_hours_available: bool = True
    deduction_hours: float = 0
    prior_completed_hours: float = 0
    total_completed_hours: float = 0
    remaining_hours: float = 0
    date_of_service: Optional[date] = None
    time_in: Optional[datetime] = None
    time_out: Optional[datetime] = None
    nature_of_work: str = ""
    status: ServiceStatus = ServiceStatus.UNSET
    remarks: str = ""


def hours_between(time_in: datetime, time_out: datetime) -> int:
    """Whole hours between two instants, truncated, never negative."""
    hours = int((time_out - time_in).total_seconds() // SECONDS_PER_HOUR)
    return max(hours, 0)


def sum_completed_hours(prior_records: Iterable[CsReport], deduction_hours: float) -> float:
    # deduction is credited as already-completed time, not subtracted from the requirement
    return sum(record.hoursCompleted or 0 for record in prior_records) + (deduction_hours or 0)


def to_iso8601(value: Union[date, datetime]) -> str:
    """UTC ISO-8601 with millisecond precision.

    A calendar date is UTC midnight of that day. Naive datetimes are taken as
    local time.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min, tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HoursLedger:
    def __init__(
        self,
        *,
        min_duration_seconds: Optional[int] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        if min_duration_seconds is None:
            min_duration_seconds = config.MIN_SERVICE_DURATION_SECONDS
        self._min_duration_seconds = max(int(min_duration_seconds), 1)
        self._today = today
        self._draft = ServiceRecord()

    @property
    def draft(self) -> ServiceRecord:
        return self._draft

    def discard(self) -> None:
        self._draft = ServiceRecord()

    def select_record(
        self,
        slip: CsSlip,
        prior_records: Iterable[CsReport],
        required_hours: Optional[float],
        deduction_hours: Optional[float],
    ) -> ServiceRecord:
        student = slip.student
        section = student.section if student else None
        deduction = float(deduction_hours or 0)
        total_completed = sum_completed_hours(prior_records, deduction)

        required_available = required_hours is not None
        required = float(required_hours) if required_hours is not None else 0.0

        service_date = parse_timestamp(slip.dateOfCs)
        if service_date is not None and service_date.tzinfo is not None:
            service_date = service_date.astimezone(timezone.utc)
        self._draft = ServiceRecord(
            slip_id=slip.id,
            student_number=(student.studentNumber or "") if student else "",
            full_name=student.full_name if student else "",
            section=(section.sectionName or "") if section else "",
            cluster_head=(section.clusterHead or "") if section else "",
            area_of_service=slip.areaOfCommServ.stationName if slip.areaOfCommServ else "",
            reason_for_service=slip.reasonOfCs or "",
            required_hours=required,
            required_hours_available=required_available,
            deduction_hours=deduction,
            prior_completed_hours=total_completed - deduction,
            total_completed_hours=total_completed,
            remaining_hours=required - total_completed,
            date_of_service=service_date.date() if service_date else self._today(),
            nature_of_work=slip.natureOfWork or "",
            status=ServiceStatus.parse(slip.status),
        )
        logger.debug(
            "Selected slip %s: completed=%s remaining=%s",
            slip.id,
            self._draft.total_completed_hours,
            self._draft.remaining_hours,
        )
        return self._draft

    def update(self, **fields: Any) -> ServiceRecord:
        """Edit free-form fields of the draft. Times go through set_time_in/set_time_out."""
        if "time_in" in fields or "time_out" in fields:
            raise ValueError("Use set_time_in/set_time_out to edit service times")
        if "status" in fields and not isinstance(fields["status"], ServiceStatus):
            fields["status"] = ServiceStatus.parse(fields["status"])
        self._draft = replace(self._draft, **fields)
        return self._draft

    def set_time_in(self, value: datetime) -> None:
        self._draft.time_in = value
        self._draft.time_out = None

    def set_time_out(self, value: datetime) -> None:
        time_in = self._draft.time_in
        if time_in is None:
            raise NoTimeIn(NO_TIME_IN_MESSAGE)
        if value <= time_in:
            raise TimeOutBeforeOrEqualTimeIn(TIME_ORDER_MESSAGE)
        if (value - time_in).total_seconds() < self._min_duration_seconds:
            raise DurationTooShort(DURATION_MESSAGE)
        self._draft.time_out = value

    def build_payload(self) -> CsReportPayload:
        draft = self._draft
        if (
            draft.slip_id in (None, "")
            or draft.date_of_service is None
            or draft.time_in is None
            or draft.time_out is None
            or not draft.nature_of_work.strip()
            or draft.status is ServiceStatus.UNSET
        ):
            raise IncompleteForm(INCOMPLETE_FORM_MESSAGE)

        return CsReportPayload(
            dateOfCs=to_iso8601(draft.date_of_service),
            timeIn=to_iso8601(draft.time_in),
            timeOut=to_iso8601(draft.time_out),
            hoursCompleted=hours_between(draft.time_in, draft.time_out),
            natureOfWork=draft.nature_of_work,
            status=draft.status.value.lower(),
            remarks=draft.remarks,
        )

    async def submit(self, api: BackendApiClient, token: str) -> CsReportPayload:
        """Send the draft as a new report for its slip. Single attempt; the draft survives failures."""
        payload = self.build_payload()
        slip_id = self._draft.slip_id

        try:
            await api.add_report_for_slip(token, slip_id, payload)
        except NetworkOrServerError as exc:
            record_report_submission("failed")
            logger.warning(
                "CS report submission failed",
                extra={"json_fields": {"event": "report_failed", "slipId": slip_id, "status": exc.status_code}},
            )
            raise

        record_report_submission(payload.status)
        logger.info(
            "CS report submitted",
            extra={"json_fields": {"event": "report_submitted", "slipId": slip_id, "hours": payload.hoursCompleted}},
        )
        self.discard()
        return payload


__all__ = [
    "ServiceStatus",
    "ServiceRecord",
    "HoursLedger",
    "hours_between",
    "sum_completed_hours",
    "to_iso8601",
]
