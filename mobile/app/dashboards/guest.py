from __future__ import annotations

from datetime import date
from typing import List, Optional

from mobile.app.api.schemas import StudentCsSlips, StudentViolations, Student
from mobile.app.auth.roles import Role
from mobile.app.auth.schemas import AuthContext
from mobile.app.core.fanout import FanoutResult, gather_all
from mobile.app.dashboards.base import DashboardController
from mobile.app.dashboards.filters import (
    ALL_STUDENTS,
    FlaggedViolation,
    flag_violations,
    slips_for_student,
    student_names,
)
from mobile.app.errors import NetworkOrServerError
from mobile.app.navigation import Screen


def _require_student_number(student: Student) -> str:
    if not student.studentNumber:
        raise NetworkOrServerError(f"No studentNumber found for student: {student.full_name or 'unknown'}")
    return student.studentNumber


class _BeneficiaryDashboard(DashboardController):
    """Guest screens list records for every beneficiary student of the guest."""

    required_role = Role.GUEST

    def __init__(self, *, fanout_policy: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._fanout_policy = fanout_policy
        self.failed_students = 0

    async def _beneficiary_students(self, auth: AuthContext) -> List[Student]:
        groups = await self._fetch(self._api.get_beneficiaries(auth.token, auth.subject_id))
        return [student for group in groups for student in group.beneficiary]

    def _absorb_failures(self, outcome: FanoutResult) -> None:
        self._raise_session_errors(outcome.errors)
        self.failed_students = len(outcome.errors)
        if outcome.errors:
            self.error = f"Could not load records for {len(outcome.errors)} student(s)."


class GuestViolationController(_BeneficiaryDashboard):
    screen = Screen.GUEST_VIOLATION

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.student_violations: List[StudentViolations] = []

    async def _violations_for(self, token: str, student: Student) -> StudentViolations:
        number = _require_student_number(student)
        violations = await self._api.get_student_violations(token, number)
        return StudentViolations(studentName=student.full_name, studentNumber=number, violations=violations)

    async def load(self, auth: AuthContext) -> None:
        students = await self._beneficiary_students(auth)

        async def fan_out() -> FanoutResult[StudentViolations]:
            return await gather_all(
                [self._violations_for(auth.token, student) for student in students],
                policy=self._fanout_policy,
            )

        outcome = await self._fetch(fan_out())
        self.student_violations = outcome.results
        self._absorb_failures(outcome)

    @property
    def student_names(self) -> List[str]:
        return student_names(self.student_violations)

    def filter(
        self,
        start: Optional[date],
        end: Optional[date],
        student: str = ALL_STUDENTS,
    ) -> List[FlaggedViolation]:
        return flag_violations(self.student_violations, start, end, student)


class GuestCsSlipController(_BeneficiaryDashboard):
    screen = Screen.GUEST_CS_SLIP

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.student_slips: List[StudentCsSlips] = []

    async def _slips_for(self, token: str, student: Student) -> StudentCsSlips:
        number = _require_student_number(student)
        slips = await self._api.get_student_slips(token, number)
        return StudentCsSlips(studentName=student.full_name, studentNumber=number, csSlips=slips)

    async def load(self, auth: AuthContext) -> None:
        students = await self._beneficiary_students(auth)

        async def fan_out() -> FanoutResult[StudentCsSlips]:
            return await gather_all(
                [self._slips_for(auth.token, student) for student in students],
                policy=self._fanout_policy,
            )

        outcome = await self._fetch(fan_out())
        self.student_slips = outcome.results
        self._absorb_failures(outcome)

    @property
    def student_names(self) -> List[str]:
        return student_names(self.student_slips)

    def filter_by_student(self, student: str = ALL_STUDENTS) -> List[StudentCsSlips]:
        return slips_for_student(self.student_slips, student)
