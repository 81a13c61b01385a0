from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class RestaurantSettings(db.Model):
    """
    Single-row venue profile shown on receipts and reports.

    The row is created by the first update; until then the settings read as
    absent.
    """
    __tablename__ = "restaurant_settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, default="Cherry Dining")
    tagline = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(128), nullable=True)
    country = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    logo_url = db.Column(db.String(512), nullable=True)
    currency = db.Column(db.String(3), nullable=False, default="NGN")
    timezone = db.Column(db.String(64), nullable=False, default="Africa/Lagos")
    receipt_footer = db.Column(db.Text, nullable=True)
    receipt_show_logo = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "tagline": self.tagline,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "phone": self.phone,
            "email": self.email,
            "logo_url": self.logo_url,
            "currency": self.currency,
            "timezone": self.timezone,
            "receipt_footer": self.receipt_footer,
            "receipt_show_logo": self.receipt_show_logo,
            "updated_at": to_utc_z(self.updated_at),
        }
