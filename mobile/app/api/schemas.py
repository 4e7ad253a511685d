"""Models for the backend's JSON payloads. Unknown fields are ignored."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 date or timestamp from the backend; None when absent or unparsable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


class Station(BaseModel):
    stationName: str


class Employee(BaseModel):
    employeeNumber: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    station: Optional[Station] = None
    httpStatusCode: Optional[int] = None


class Section(BaseModel):
    sectionName: Optional[str] = None
    clusterHead: Optional[str] = None


class Student(BaseModel):
    studentNumber: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    section: Optional[Section] = None

    @field_validator("studentNumber", mode="before")
    @classmethod
    def _stringify_number(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.firstName, self.lastName) if part).strip()


class CsSlip(BaseModel):
    id: Union[int, str]
    student: Optional[Student] = None
    areaOfCommServ: Optional[Station] = None
    reasonOfCs: Optional[str] = None
    dateOfCs: Optional[str] = None
    natureOfWork: Optional[str] = None
    status: Optional[str] = None
    deduction: float = 0

    @field_validator("deduction", mode="before")
    @classmethod
    def _missing_deduction_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class CsReport(BaseModel):
    id: Optional[Union[int, str]] = None
    dateOfCs: Optional[str] = None
    timeIn: Optional[str] = None
    timeOut: Optional[str] = None
    hoursCompleted: float = 0
    natureOfWork: Optional[str] = None
    status: Optional[str] = None
    remarks: Optional[str] = None

    @field_validator("hoursCompleted", mode="before")
    @classmethod
    def _missing_hours_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class SlipReports(BaseModel):
    reports: List[CsReport]


class Violation(BaseModel):
    model_config = {"extra": "allow"}

    id: Optional[Union[int, str]] = None
    dateOfNotice: Optional[str] = None

    @property
    def notice_date(self) -> Optional[datetime]:
        return parse_timestamp(self.dateOfNotice)


class BeneficiaryGroup(BaseModel):
    beneficiary: List[Student]


class StudentViolations(BaseModel):
    studentName: str
    studentNumber: str
    violations: List[Violation] = Field(default_factory=list)


class StudentCsSlips(BaseModel):
    studentName: str
    studentNumber: str
    csSlips: List[CsSlip] = Field(default_factory=list)


class CsReportPayload(BaseModel):
    dateOfCs: str
    timeIn: str
    timeOut: str
    hoursCompleted: int
    natureOfWork: str
    status: str
    remarks: str = ""


__all__ = [
    "parse_timestamp",
    "Station",
    "Employee",
    "Section",
    "Student",
    "CsSlip",
    "CsReport",
    "SlipReports",
    "Violation",
    "BeneficiaryGroup",
    "StudentViolations",
    "StudentCsSlips",
    "CsReportPayload",
]
