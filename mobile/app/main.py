import logging
from typing import Callable, Dict, Optional

from mobile.app.auth.login import LoginResult
from mobile.app.dashboards.base import DashboardController
from mobile.app.dashboards.employee import EmployeeReportController
from mobile.app.dashboards.guest import GuestCsSlipController, GuestViolationController
from mobile.app.dashboards.student import StudentCsSlipController, StudentViolationController
from mobile.app.dependencies import AppContext, get_app_context
from mobile.app.navigation import Screen
from mobile.app.utils.observability import configure_logging

configure_logging()

logger = logging.getLogger("mobile.app")

ControllerFactory = Callable[[AppContext], DashboardController]

DASHBOARDS: Dict[Screen, ControllerFactory] = {
    Screen.STUDENT_VIOLATION: lambda ctx: StudentViolationController(guard=ctx.guard, api=ctx.api),
    Screen.STUDENT_CS_SLIP: lambda ctx: StudentCsSlipController(guard=ctx.guard, api=ctx.api),
    Screen.GUEST_VIOLATION: lambda ctx: GuestViolationController(guard=ctx.guard, api=ctx.api),
    Screen.GUEST_CS_SLIP: lambda ctx: GuestCsSlipController(guard=ctx.guard, api=ctx.api),
    Screen.EMPLOYEE_REPORT: lambda ctx: EmployeeReportController(guard=ctx.guard, api=ctx.api),
}


class MobileApp:
    """Top-level shell: owns the app context and the one mounted dashboard."""

    def __init__(self, context: Optional[AppContext] = None) -> None:
        self.context = context or get_app_context()
        self.controller: Optional[DashboardController] = None

    @property
    def current_screen(self) -> Screen:
        return self.context.navigator.current

    async def login(self, username: str, password: str) -> DashboardController:
        result: LoginResult = await self.context.login.login(username, password)
        return await self.open_screen(result.landing)

    async def open_screen(self, screen: Screen) -> DashboardController:
        """Mount a fresh controller for `screen` and run its activation."""
        factory = DASHBOARDS.get(screen)
        if factory is None:
            raise ValueError(f"{screen.value} is not a protected dashboard")

        self.close_screen()
        if self.context.navigator.current is not screen:
            self.context.navigator.navigate(screen)
        controller = factory(self.context)
        self.controller = controller
        logger.info("Opening screen", extra={"json_fields": {"event": "screen_open", "screen": screen.value}})
        await controller.activate()
        return controller

    def close_screen(self) -> None:
        if self.controller is not None:
            self.controller.deactivate()
            self.controller = None

    async def logout(self) -> None:
        controller = self.controller
        self.controller = None
        if controller is not None:
            await controller.logout()
        else:
            await self.context.guard.logout(cause="user")
