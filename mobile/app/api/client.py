from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx  # type: ignore[import-not-found]
from pydantic import BaseModel, TypeAdapter, ValidationError

from mobile.app import config
from mobile.app.api.schemas import (
    BeneficiaryGroup,
    CsReportPayload,
    CsSlip,
    Employee,
    SlipReports,
    Violation,
)
from mobile.app.errors import NetworkOrServerError, SessionRejected

logger = logging.getLogger("api.client")

TOKEN_HEADER = "jwt-token"
NO_RESPONSE_MESSAGE = "No response from server. Check network or server status."
SESSION_REJECTED_MESSAGE = "Your session has expired. Please log in again."

ModelT = TypeVar("ModelT", bound=BaseModel)


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


class BackendApiClient:
    """Async client for the school tracking REST service.

    Every data call takes the bearer token explicitly; nothing is read from
    ambient state. Errors surface as `NetworkOrServerError` carrying a message
    fit for display, or `SessionRejected` when the backend refuses the token.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else float(config.API_TIMEOUT_SECONDS)
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json_body: Optional[Any] = None,
        failure_message: str = "Request failed. Please try again.",
        guarded: bool = True,
    ) -> httpx.Response:
        headers: Dict[str, str] = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._get_client().request(method, path, json=json_body, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Request %s %s failed: %s", method, path, exc)
            raise NetworkOrServerError(NO_RESPONSE_MESSAGE) from exc

        if guarded and response.status_code in (401, 403):
            raise SessionRejected(SESSION_REJECTED_MESSAGE)
        if response.status_code >= 400:
            message = _server_message(response) or failure_message
            logger.info(
                "Backend refused request",
                extra={"json_fields": {"method": method, "path": path, "status": response.status_code}},
            )
            raise NetworkOrServerError(message, status_code=response.status_code)
        return response

    @staticmethod
    def _payload(response: httpx.Response, *, what: str, empty: Any = None) -> Any:
        if not response.content or not response.text.strip():
            if empty is not None:
                return empty
            raise NetworkOrServerError("No data received.", status_code=response.status_code)
        try:
            payload = response.json()
        except (ValueError, json.JSONDecodeError) as exc:
            raise NetworkOrServerError(f"Failed to parse {what}.", status_code=response.status_code) from exc
        # Some endpoints report auth failures in the body with a 200 status
        if isinstance(payload, dict) and payload.get("httpStatusCode") in (401, 403):
            raise SessionRejected(SESSION_REJECTED_MESSAGE)
        return payload

    @staticmethod
    def _parse(model: Type[ModelT], payload: Any, *, what: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise NetworkOrServerError(f"Failed to parse {what}.") from exc

    @staticmethod
    def _parse_list(model: Type[ModelT], payload: Any, *, what: str) -> List[ModelT]:
        if not isinstance(payload, list):
            raise NetworkOrServerError(f"Unexpected {what} response: expected a list.")
        try:
            return TypeAdapter(List[model]).validate_python(payload)  # type: ignore[valid-type]
        except ValidationError as exc:
            raise NetworkOrServerError(f"Failed to parse {what}.") from exc

    # --- account endpoints -------------------------------------------------

    async def login(self, username: str, password: str) -> str:
        response = await self._request(
            "POST",
            "/user/login",
            json_body={"username": username, "password": password},
            failure_message="Login failed. Please check your credentials.",
            guarded=False,
        )
        token = response.headers.get(TOKEN_HEADER)
        return token or ""

    async def register(self, payload: Dict[str, Any]) -> None:
        await self._request(
            "POST",
            "/user/register",
            json_body=payload,
            failure_message="An error occurred during registration.",
            guarded=False,
        )

    async def verify_otp(self, username: str, otp: str) -> None:
        await self._request(
            "POST",
            "/user/verify-otp",
            json_body={"username": username, "otp": otp},
            failure_message="OTP verification failed.",
            guarded=False,
        )

    async def forgot_password(self, username: str) -> None:
        await self._request(
            "POST",
            "/user/forgot-password",
            json_body={"username": username},
            failure_message="An error occurred while processing your request.",
            guarded=False,
        )

    async def verify_forgot_password(self, username: str, otp: str, password: str) -> None:
        await self._request(
            "POST",
            "/user/verify-forgot-password",
            json_body={"username": username, "otp": otp, "password": password},
            failure_message="Failed to update password. Please check your OTP and try again.",
            guarded=False,
        )

    async def forgot_username(self, email: str) -> None:
        await self._request(
            "POST",
            "/user/forgot-username",
            json_body={"email": email},
            failure_message="An error occurred while processing your request.",
            guarded=False,
        )

    async def verify_otp_forgot_username(self, otp: str, username: str) -> None:
        await self._request(
            "POST",
            "/user/verify-otp-forgot-username",
            json_body={"otp": otp, "username": username},
            failure_message="Request failed. Please check your credentials and try again.",
            guarded=False,
        )

    # --- guarded data endpoints --------------------------------------------

    async def get_employee(self, token: str, employee_number: str) -> Employee:
        response = await self._request(
            "GET",
            f"/employee/employeeNumber/{_segment(employee_number)}",
            token=token,
            failure_message="Failed to fetch employee data.",
        )
        payload = self._payload(response, what="employee data")
        return self._parse(Employee, payload, what="employee data")

    async def get_slips_for_area(self, token: str, station_name: str) -> List[CsSlip]:
        response = await self._request(
            "GET",
            f"/csSlip/areaOfCs/{_segment(station_name)}",
            token=token,
            failure_message="Error fetching CS slips",
        )
        payload = self._payload(response, what="CS slip data", empty=[])
        return self._parse_list(CsSlip, payload, what="CS slip data")

    async def get_total_cs_hours(self, token: str, student_number: str) -> float:
        response = await self._request(
            "GET",
            f"/csSlip/totalCsHours/{_segment(student_number)}",
            token=token,
            failure_message="Failed to fetch total CS hours",
        )
        payload = self._payload(response, what="total CS hours")
        try:
            return float(payload)
        except (TypeError, ValueError) as exc:
            raise NetworkOrServerError("Failed to parse total CS hours.") from exc

    async def get_slip_reports(self, token: str, slip_id: Any) -> SlipReports:
        response = await self._request(
            "GET",
            f"/csSlip/commServSlip/{_segment(slip_id)}",
            token=token,
            failure_message=f"Failed to fetch reports for CS slip {slip_id}",
        )
        payload = self._payload(response, what="CS slip reports")
        return self._parse(SlipReports, payload, what="CS slip reports")

    async def get_student_slips(self, token: str, student_number: str) -> List[CsSlip]:
        response = await self._request(
            "GET",
            f"/csSlip/studentNumber/{_segment(student_number)}",
            token=token,
            failure_message=f"Failed to fetch CS slip for studentNumber: {student_number}",
        )
        payload = self._payload(response, what="CS slip data", empty=[])
        return self._parse_list(CsSlip, payload, what="CS slip data")

    async def get_student_violations(self, token: str, student_number: str) -> List[Violation]:
        response = await self._request(
            "GET",
            f"/violation/studentNumber/{_segment(student_number)}",
            token=token,
            failure_message="Unable to fetch violations. Please try again later.",
        )
        payload = self._payload(response, what="violation data", empty=[])
        return self._parse_list(Violation, payload, what="violation data")

    async def get_beneficiaries(self, token: str, guest_id: str) -> List[BeneficiaryGroup]:
        response = await self._request(
            "GET",
            f"/guest/{_segment(guest_id)}/Beneficiaries",
            token=token,
            failure_message="Failed to fetch beneficiaries",
        )
        payload = self._payload(response, what="beneficiaries", empty=[])
        return self._parse_list(BeneficiaryGroup, payload, what="beneficiaries")

    async def add_report_for_slip(self, token: str, slip_id: Any, payload: CsReportPayload) -> None:
        await self._request(
            "POST",
            f"/csreport/addCsReportForSlip/{_segment(slip_id)}",
            token=token,
            json_body=payload.model_dump(),
            failure_message="Failed to add report.",
        )


__all__ = ["BackendApiClient", "TOKEN_HEADER", "NO_RESPONSE_MESSAGE", "SESSION_REJECTED_MESSAGE"]
