from __future__ import annotations

import re
from typing import Any

from ..extensions import db
from ..models import RestaurantSettings
from .auth_service import is_valid_email


CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
TIMEZONE_RE = re.compile(r"^[A-Za-z_]+(?:/[A-Za-z0-9_+\-]+)*$")

TEXT_FIELDS = (
    "name", "tagline", "address", "city", "country", "phone", "email",
    "logo_url", "currency", "timezone", "receipt_footer",
)
REQUIRED_FIELDS = {"name", "currency", "timezone"}


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


def get_settings() -> RestaurantSettings | None:
    return db.session.query(RestaurantSettings).order_by(RestaurantSettings.id.asc()).first()


def _normalize(field: str, value: Any) -> Any:
    if field == "receipt_show_logo":
        if not isinstance(value, bool):
            raise SettingsValidationError("receipt_show_logo: expected a boolean")
        return value

    text = (str(value).strip() or None) if value is not None else None
    if text is None:
        if field in REQUIRED_FIELDS:
            raise SettingsValidationError(f"{field}: is required")
        return None
    if field == "currency":
        text = text.upper()
        if not CURRENCY_RE.match(text):
            raise SettingsValidationError("currency: expected a 3-letter code")
    if field == "timezone" and not TIMEZONE_RE.match(text):
        raise SettingsValidationError("timezone: format is invalid")
    if field == "email" and not is_valid_email(text):
        raise SettingsValidationError("email: format is invalid")
    return text


def update_settings(changes: dict[str, Any]) -> RestaurantSettings:
    """
    Upsert the settings row. Unknown keys are rejected; omitted keys keep
    their current (or default) values.
    """
    unknown = set(changes) - set(TEXT_FIELDS) - {"receipt_show_logo"}
    if unknown:
        raise SettingsValidationError(f"Unknown setting: {sorted(unknown)[0]}")

    values = {field: _normalize(field, value) for field, value in changes.items()}

    settings = get_settings()
    if settings is None:
        settings = RestaurantSettings()
        db.session.add(settings)
    for field, value in values.items():
        setattr(settings, field, value)

    db.session.commit()
    return settings
