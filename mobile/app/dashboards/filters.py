from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence

from mobile.app.api.schemas import StudentCsSlips, StudentViolations, Violation

ALL_STUDENTS = "all"


@dataclass(frozen=True)
class FlaggedViolation:
    student_name: str
    violation: Violation


def _local_date(value: datetime) -> date:
    if value.tzinfo is not None:
        return value.astimezone().date()
    return value.date()


def violations_between(violations: Iterable[Violation], start: Optional[date], end: Optional[date]) -> List[Violation]:
    """Violations noticed between the two days, both ends inclusive. Undated entries never match."""
    matched: List[Violation] = []
    for violation in violations:
        noticed = violation.notice_date
        if noticed is None:
            continue
        day = _local_date(noticed)
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        matched.append(violation)
    return matched


def student_names(groups: Sequence[object]) -> List[str]:
    names: List[str] = []
    for group in groups:
        name = getattr(group, "studentName", None)
        if name and name not in names:
            names.append(name)
    return names


def flag_violations(
    groups: Iterable[StudentViolations],
    start: Optional[date],
    end: Optional[date],
    student: str = ALL_STUDENTS,
) -> List[FlaggedViolation]:
    flagged: List[FlaggedViolation] = []
    for group in groups:
        if student != ALL_STUDENTS and group.studentName != student:
            continue
        for violation in violations_between(group.violations, start, end):
            flagged.append(FlaggedViolation(student_name=group.studentName, violation=violation))
    return flagged


def slips_for_student(groups: Iterable[StudentCsSlips], student: str = ALL_STUDENTS) -> List[StudentCsSlips]:
    if student == ALL_STUDENTS:
        return list(groups)
    return [group for group in groups if group.studentName == student]
