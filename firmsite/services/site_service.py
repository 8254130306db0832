"""Site-wide contact details and link helpers.

Contact details come from the About-Us record; any missing field, or a
backend failure, falls back to the defaults in ``Config``. Phone links
use the Indian country code unless the number already carries it.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional
from urllib.parse import quote

from flask import current_app, g
from pydantic import BaseModel

from firmsite.schemas import AboutUs
from firmsite.services.content_client import ContentApiError, get_client

logger = logging.getLogger(__name__)

COUNTRY_CODE = "91"


class SiteInfo(BaseModel):
    company_name: str
    phone: str
    email: str
    address: str
    working_hours: str

    @property
    def phone_link(self) -> str:
        return phone_link(self.phone)

    @property
    def whatsapp_link(self) -> str:
        return whatsapp_link(self.phone)

    @property
    def email_link(self) -> str:
        return email_link(self.email)


def default_site_info(cfg: Any) -> SiteInfo:
    return SiteInfo(
        company_name=cfg["SITE_COMPANY_NAME"],
        phone=cfg["SITE_PHONE"],
        email=cfg["SITE_EMAIL"],
        address=cfg["SITE_ADDRESS"],
        working_hours=cfg["SITE_WORKING_HOURS"],
    )


def site_info_from_about(about: Optional[AboutUs], cfg: Any) -> SiteInfo:
    defaults = default_site_info(cfg)
    if about is None:
        return defaults
    return SiteInfo(
        company_name=defaults.company_name,
        phone=about.phone or defaults.phone,
        email=about.email or defaults.email,
        address=about.address or defaults.address,
        working_hours=about.working_hours or defaults.working_hours,
    )


def load_site_info() -> SiteInfo:
    """Site info for the current request, fetched at most once per request."""
    info = g.get("site_info")
    if info is not None:
        return info

    about = None
    try:
        about = get_client().get_about_us()
    except ContentApiError as e:
        logger.warning("Using default site info: %s", e)
    info = site_info_from_about(about, current_app.config)
    g.site_info = info
    return info


def _digits_with_country_code(phone: str) -> str:
    digits = re.sub(r"\D", "", phone or "")
    return digits if digits.startswith(COUNTRY_CODE) else COUNTRY_CODE + digits


def phone_link(phone: str) -> str:
    return f"tel:+{_digits_with_country_code(phone)}"


def whatsapp_link(phone: str, message: Optional[str] = None) -> str:
    base = f"https://wa.me/{_digits_with_country_code(phone)}"
    return f"{base}?text={quote(message, safe='')}" if message else base


def email_link(email: str, subject: Optional[str] = None) -> str:
    base = f"mailto:{email}"
    return f"{base}?subject={quote(subject, safe='')}" if subject else base
