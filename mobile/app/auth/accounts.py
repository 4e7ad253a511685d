"""Registration, OTP verification and account recovery flows."""
from __future__ import annotations

import logging
import random
import re
from typing import Callable, Dict, Mapping, Optional

from mobile.app.api.client import BackendApiClient
from mobile.app.errors import FormValidationError
from mobile.app.navigation import Navigator, Screen

logger = logging.getLogger("auth.accounts")

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9]+$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[0-9]{11}$")
_STRONG_PASSWORD_RE = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*[0-9])(?=.*[!@#$%^&*])")

MIN_PASSWORD_LENGTH = 8

GUEST_PERSONAL_FIELDS = (
    "firstName",
    "lastName",
    "birthdate",
    "birthplace",
    "citizenship",
    "religion",
    "civilStatus",
    "sex",
)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _check_username(username: str, errors: Dict[str, str]) -> None:
    if _blank(username) or not _USERNAME_RE.match(username):
        errors["username"] = "Please enter a valid username (alphanumeric characters only)."


def _check_password(password: str, errors: Dict[str, str]) -> None:
    if _blank(password):
        errors["password"] = "Please enter a password."
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
    elif not _STRONG_PASSWORD_RE.search(password):
        errors["password"] = (
            "Your password is weak. Please include a mix of uppercase, lowercase, numbers, and special characters."
        )


def _check_email(email: str, errors: Dict[str, str]) -> None:
    if _blank(email) or not _EMAIL_RE.match(email):
        errors["email"] = "Please enter a valid email address."


def _raise_if(errors: Dict[str, str]) -> None:
    if errors:
        raise FormValidationError(errors)


def generate_guest_number(rng: Callable[[int, int], int] = random.randint) -> str:
    return f"GUEST_{rng(1000, 9999)}"


def _format_label(field: str) -> str:
    return re.sub(r"(?<!^)([A-Z])", r" \1", field).lower()


class AccountService:
    """Unauthenticated account flows. Local validation runs before any request."""

    def __init__(self, api: BackendApiClient, navigator: Navigator) -> None:
        self._api = api
        self._navigator = navigator

    async def _register(self, payload: Dict[str, object], username: str) -> Screen:
        await self._api.register(payload)
        logger.info("Registration accepted", extra={"json_fields": {"event": "registered", "username": username}})
        self._navigator.navigate(Screen.VERIFY_OTP)
        return Screen.VERIFY_OTP

    async def register_student(self, username: str, password: str, student_number: str, email: str) -> Screen:
        return await self._register_member("student", username, password, student_number, email)

    async def register_employee(self, username: str, password: str, employee_number: str, email: str) -> Screen:
        return await self._register_member("employee", username, password, employee_number, email)

    async def _register_member(
        self,
        kind: str,
        username: str,
        password: str,
        member_number: str,
        email: str,
    ) -> Screen:
        """Register a student or an employee account; the backend then sends an OTP."""
        errors: Dict[str, str] = {}
        _check_username(username, errors)
        _check_password(password, errors)
        if _blank(member_number):
            errors["memberNumber"] = "Please enter your Member Number."
        _check_email(email, errors)
        _raise_if(errors)

        number_key = "studentNumber" if kind == "student" else "employeeNumber"
        payload: Dict[str, object] = {
            "user": {"username": username, "password": password},
            kind: {number_key: member_number, "email": email},
        }
        return await self._register(payload, username)

    async def register_guest(
        self,
        username: str,
        password: str,
        guest_number: str,
        details: Mapping[str, str],
    ) -> Screen:
        """`details` carries the personal fields plus email, contactNumber and address."""
        errors: Dict[str, str] = {}
        _check_username(username, errors)
        _check_password(password, errors)
        for field in GUEST_PERSONAL_FIELDS:
            if _blank(details.get(field)):
                errors[field] = f"Please enter a {_format_label(field)}"

        email = details.get("email", "")
        if _blank(email):
            errors["email"] = "Please enter an email"
        elif not _EMAIL_RE.match(email):
            errors["email"] = "Please enter a valid email address"
        contact_number = details.get("contactNumber", "")
        if _blank(contact_number):
            errors["contactNumber"] = "Please enter a contact number"
        elif not _PHONE_RE.match(contact_number):
            errors["contactNumber"] = "Incorrect or incomplete contact number"
        if _blank(details.get("address")):
            errors["address"] = "Please enter an address"
        _raise_if(errors)

        payload: Dict[str, object] = {
            "user": {"username": username, "password": password},
            "guest": {"guestNumber": guest_number, **dict(details)},
        }
        return await self._register(payload, username)

    async def verify_otp(self, username: str, otp: str) -> Screen:
        errors: Dict[str, str] = {}
        if _blank(otp):
            errors["otp"] = "OTP is Required"
        _raise_if(errors)
        await self._api.verify_otp(username, otp.strip())
        self._navigator.reset_to(Screen.LOGIN)
        return Screen.LOGIN

    async def request_password_reset(self, username: str) -> None:
        if _blank(username):
            raise FormValidationError({"username": "Username is Required"})
        if not _USERNAME_RE.match(username):
            raise FormValidationError(
                {"username": "Please Enter a Valid Input (alphanumeric characters only)."}
            )
        await self._api.forgot_password(username)

    async def reset_password(
        self,
        username: str,
        otp: str,
        password: str,
        *,
        old_password: Optional[str] = None,
    ) -> Screen:
        if old_password is not None and password == old_password:
            raise FormValidationError({"password": "You cannot use the same password. Please enter a new one."})
        errors: Dict[str, str] = {}
        if _blank(otp):
            errors["otp"] = "OTP is Required"
        if _blank(password):
            errors["password"] = "Password is Required"
        _raise_if(errors)
        await self._api.verify_forgot_password(username, otp.strip(), password)
        self._navigator.reset_to(Screen.LOGIN)
        return Screen.LOGIN

    async def request_username_recovery(self, email: str) -> None:
        if _blank(email):
            raise FormValidationError({"email": "Email is required"})
        errors: Dict[str, str] = {}
        _check_email(email, errors)
        _raise_if(errors)
        await self._api.forgot_username(email)

    async def verify_username_recovery(self, otp: str, new_username: str) -> Screen:
        errors: Dict[str, str] = {}
        if _blank(otp):
            errors["otp"] = "OTP is Required"
        _check_username(new_username, errors)
        _raise_if(errors)
        await self._api.verify_otp_forgot_username(otp.strip(), new_username)
        self._navigator.reset_to(Screen.LOGIN)
        return Screen.LOGIN
