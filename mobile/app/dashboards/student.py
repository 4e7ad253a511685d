from __future__ import annotations

from datetime import date
from typing import List, Optional

from mobile.app.api.schemas import CsSlip, Violation
from mobile.app.auth.roles import Role
from mobile.app.auth.schemas import AuthContext
from mobile.app.dashboards.base import DashboardController
from mobile.app.dashboards.filters import violations_between
from mobile.app.navigation import Screen


class StudentViolationController(DashboardController):
    required_role = Role.STUDENT
    screen = Screen.STUDENT_VIOLATION

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.violations: List[Violation] = []

    async def load(self, auth: AuthContext) -> None:
        self.violations = await self._fetch(self._api.get_student_violations(auth.token, auth.subject_id))

    def filter_by_date(self, start: Optional[date], end: Optional[date]) -> List[Violation]:
        return violations_between(self.violations, start, end)


class StudentCsSlipController(DashboardController):
    required_role = Role.STUDENT
    screen = Screen.STUDENT_CS_SLIP

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.slips: List[CsSlip] = []

    async def load(self, auth: AuthContext) -> None:
        self.slips = await self._fetch(self._api.get_student_slips(auth.token, auth.subject_id))
