from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from mobile.app.api.schemas import CsReport, CsSlip, Employee
from mobile.app.auth.roles import Role
from mobile.app.auth.schemas import AuthContext
from mobile.app.core.activation import ScreenRetired
from mobile.app.core.ledger import HoursLedger, ServiceRecord
from mobile.app.dashboards.base import DashboardController
from mobile.app.errors import LedgerValidationError, NetworkOrServerError, SessionError
from mobile.app.navigation import Screen

logger = logging.getLogger("dashboards.employee")

REPORT_ADDED_MESSAGE = "Report added successfully."


class EmployeeReportController(DashboardController):
    """Report intake for the employee's service station.

    Lists the CS slips assigned to the station; selecting a row opens the
    report form backed by an `HoursLedger` draft.
    """

    required_role = Role.EMPLOYEE
    screen = Screen.EMPLOYEE_REPORT

    def __init__(self, *, ledger: Optional[HoursLedger] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.ledger = ledger or HoursLedger()
        self.employee: Optional[Employee] = None
        self.slips: List[CsSlip] = []
        self.prior_reports: List[CsReport] = []
        self.form_open = False
        self.field_errors: Dict[str, str] = {}
        self.submit_error: Optional[str] = None

    async def load(self, auth: AuthContext) -> None:
        employee = await self._fetch(self._api.get_employee(auth.token, auth.subject_id))
        if employee.station is None:
            self.error = "Station data is missing."
            return
        self.employee = employee
        self.slips = await self._fetch(self._api.get_slips_for_area(auth.token, employee.station.stationName))

    async def _required_hours(self, token: str, slip: CsSlip) -> Optional[float]:
        student_number = slip.student.studentNumber if slip.student else None
        if not student_number:
            return None
        try:
            return await self._fetch(self._api.get_total_cs_hours(token, student_number))
        except NetworkOrServerError as exc:
            logger.warning("Total CS hours unavailable for %s: %s", student_number, exc.message)
            return None

    async def _prior_reports(self, token: str, slip: CsSlip) -> List[CsReport]:
        try:
            fetched = await self._fetch(self._api.get_slip_reports(token, slip.id))
        except NetworkOrServerError as exc:
            logger.warning("Reports for slip %s unavailable: %s", slip.id, exc.message)
            return []
        return fetched.reports

    async def select_slip(self, slip: CsSlip) -> Optional[ServiceRecord]:
        if self.auth is None or not self.is_active:
            return None
        token = self.auth.token
        self.field_errors = {}
        self.submit_error = None
        try:
            required = await self._required_hours(token, slip)
            self.prior_reports = await self._prior_reports(token, slip)
        except SessionError as exc:
            await self._reject(exc)
            return None
        except ScreenRetired:
            return None

        record = self.ledger.select_record(slip, self.prior_reports, required, slip.deduction)
        self.form_open = True
        return record

    def set_time_in(self, value: datetime) -> None:
        self.ledger.set_time_in(value)
        self.field_errors.pop("time_in", None)
        self.field_errors.pop("time_out", None)

    def set_time_out(self, value: datetime) -> bool:
        try:
            self.ledger.set_time_out(value)
        except LedgerValidationError as exc:
            self.field_errors["time_out"] = str(exc)
            return False
        self.field_errors.pop("time_out", None)
        return True

    def update_form(self, **fields) -> ServiceRecord:
        return self.ledger.update(**fields)

    async def submit(self) -> bool:
        if self.auth is None or not self.is_active:
            return False
        self.submit_error = None
        try:
            await self._fetch(self.ledger.submit(self._api, self.auth.token))
        except LedgerValidationError as exc:
            self.submit_error = str(exc)
            return False
        except SessionError as exc:
            await self._reject(exc)
            return False
        except NetworkOrServerError as exc:
            self.submit_error = exc.message
            return False
        except ScreenRetired:
            return False

        self.form_open = False
        self.field_errors = {}
        self.notice = REPORT_ADDED_MESSAGE
        return True

    def close_form(self) -> None:
        self.form_open = False
        self.ledger.discard()

    def deactivate(self) -> None:
        super().deactivate()
        self.close_form()
