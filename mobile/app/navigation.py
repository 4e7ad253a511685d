"""Screen identifiers and a minimal navigation stack."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional

from mobile.app.auth.roles import Role

logger = logging.getLogger("navigation")


class Screen(str, Enum):
    LOGIN = "Login"
    CREATE_ACCOUNT = "CreateAccount"
    ADD_GUEST = "AddGuest"
    VERIFY_OTP = "VerifyOtp"
    FORGOT = "Forgot"
    STUDENT_VIOLATION = "StudentViolation"
    STUDENT_CS_SLIP = "StudentCsSlip"
    GUEST_VIOLATION = "GuestViolation"
    GUEST_CS_SLIP = "GuestCsSlip"
    EMPLOYEE_REPORT = "EmployeeReport"


_LANDING: Dict[Role, Screen] = {
    Role.STUDENT: Screen.STUDENT_VIOLATION,
    Role.EMPLOYEE: Screen.EMPLOYEE_REPORT,
    Role.GUEST: Screen.GUEST_VIOLATION,
}


def landing_screen(role: Role) -> Optional[Screen]:
    return _LANDING.get(role)


class Navigator:
    """Records where the app is. Screens push; login and logout replace the stack."""

    def __init__(self, initial: Screen = Screen.LOGIN) -> None:
        self._stack: List[Screen] = [initial]

    @property
    def current(self) -> Screen:
        return self._stack[-1]

    @property
    def history(self) -> List[Screen]:
        return list(self._stack)

    def navigate(self, screen: Screen) -> None:
        self._stack.append(screen)

    def back(self) -> Screen:
        if len(self._stack) > 1:
            self._stack.pop()
        return self.current

    def reset_to(self, screen: Screen) -> None:
        logger.debug("Navigation reset to %s", screen.value)
        self._stack = [screen]
