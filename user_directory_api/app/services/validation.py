"""
Input validation for users and zones.

Each entity has one explicit validation function that runs before any
business logic.  The functions never raise: they collect every failed
check into a list of ``Violation`` objects so that a client learns
about all problems with its payload at once.  Services turn a
non‑empty list into a ``BadRequestError``.
"""

import re
from typing import List, Optional

from pydantic import EmailStr, HttpUrl, TypeAdapter, ValidationError

from ..core.errors import BadRequestError, Violation
from ..schemas.user import ColorBackground, ImageBackground, Social, UserCreate, UserUpdate
from ..schemas.zone import ZoneCreate


LOGIN_RE = re.compile(r"^[a-z0-9_.\-]{3,64}$")
PHONE_RE = re.compile(r"^\+?[0-9]{10,15}$")
MIN_PASSWORD_LENGTH = 6

# Email and link syntax is left to pydantic's own types.
EMAIL = TypeAdapter(EmailStr)
HTTP_URL = TypeAdapter(HttpUrl)

# Fields a patch may not clear by sending ``null``.
NON_NULLABLE_FIELDS = ("login", "password", "name", "last_name", "socials", "role_id")


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _conforms(adapter: TypeAdapter, value: str) -> bool:
    try:
        adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def _check_login(login: str, violations: List[Violation]) -> None:
    if not LOGIN_RE.match(login.strip().lower()):
        violations.append(
            Violation("login", "Login must be 3-64 characters: letters, digits, '_', '.' or '-'")
        )


def _check_password(password: str, violations: List[Violation]) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        violations.append(
            Violation("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        )


def _check_contacts(email: Optional[str], phone: Optional[str], violations: List[Violation]) -> None:
    if email and not _conforms(EMAIL, email):
        violations.append(Violation("email", "Email address is not valid"))
    if phone and not PHONE_RE.match(phone):
        violations.append(Violation("phone", "Phone number must contain 10-15 digits"))


def _check_socials(socials: List[Social], violations: List[Violation]) -> None:
    for index, social in enumerate(socials):
        if _blank(social.name):
            violations.append(Violation(f"socials[{index}].name", "Social network name is required"))
        if not _conforms(HTTP_URL, social.url):
            violations.append(Violation(f"socials[{index}].url", "Social link must be an http(s) URL"))


def _check_background(background, violations: List[Violation]) -> None:
    if isinstance(background, ColorBackground) and _blank(background.value):
        violations.append(Violation("background.value", "Background colour must not be empty"))
    elif isinstance(background, ImageBackground) and _blank(background.reference):
        violations.append(Violation("background.reference", "Background image reference must not be empty"))


def validate_user_create(data: UserCreate) -> List[Violation]:
    """Validate a registration payload."""
    violations: List[Violation] = []
    _check_login(data.login, violations)
    _check_password(data.password, violations)
    if _blank(data.name):
        violations.append(Violation("name", "Name is required"))
    _check_contacts(data.email, data.phone, violations)
    _check_socials(data.socials, violations)
    if data.background is not None:
        _check_background(data.background, violations)
    return violations


def validate_user_update(patch: UserUpdate) -> List[Violation]:
    """Validate only the fields present in ``patch``."""
    violations: List[Violation] = []
    changed = patch.changed_fields()
    for field in NON_NULLABLE_FIELDS:
        if field in changed and getattr(patch, field) is None:
            violations.append(Violation(field, "Field can not be null"))
    if patch.login is not None:
        _check_login(patch.login, violations)
    if patch.password is not None:
        _check_password(patch.password, violations)
    if "name" in changed and patch.name is not None and _blank(patch.name):
        violations.append(Violation("name", "Name is required"))
    _check_contacts(patch.email, patch.phone, violations)
    if patch.socials is not None:
        _check_socials(patch.socials, violations)
    if patch.background is not None:
        _check_background(patch.background, violations)
    if patch.role_id is not None and patch.role_id <= 0:
        violations.append(Violation("role_id", "Role id must be positive"))
    return violations


def validate_zone(data: ZoneCreate) -> List[Violation]:
    """Zones are opaque; only the presence of a name and a geometry is checked."""
    violations: List[Violation] = []
    if _blank(data.name):
        violations.append(Violation("name", "Zone name is required"))
    if not data.geometry:
        violations.append(Violation("geometry", "Zone geometry is required"))
    return violations


def raise_for_violations(violations: List[Violation], message: str = "Invalid input") -> None:
    if violations:
        raise BadRequestError(message, violations=violations)
