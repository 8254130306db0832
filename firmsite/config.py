"""Configuration for environment variables and runtime knobs.

Provides a simple config object with the content API location, upload
limits, page sizes and the site-wide contact defaults. This keeps the
rest of the codebase decoupled from direct env access.
"""

from __future__ import annotations

import os
from typing import Any, Mapping


class Config:
    # Base
    FIRMSITE_ENV = os.getenv("FIRMSITE_ENV", "dev")
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Content backend
    CONTENT_API_URL = os.getenv("CONTENT_API_URL", "http://localhost:5000/api")
    CONTENT_API_TIMEOUT = float(os.getenv("CONTENT_API_TIMEOUT", "10"))

    # Upload limits and whitelist
    MAX_IMAGES = int(os.getenv("MAX_IMAGES", "3"))
    MAX_UPLOAD_MB = int(os.getenv("MAX_UPLOAD_MB", "5"))
    ALLOWED_IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}

    # Page sizes (public site)
    SERVICES_PER_PAGE = int(os.getenv("SERVICES_PER_PAGE", "9"))
    BLOGS_PER_PAGE = int(os.getenv("BLOGS_PER_PAGE", "9"))

    # Page sizes (admin)
    ADMIN_SERVICES_PER_PAGE = 10
    ADMIN_BLOGS_PER_PAGE = 10
    ADMIN_CONTACTS_PER_PAGE = 20
    ADMIN_FAQS_PER_PAGE = 50

    EXCERPT_MAX_CHARS = 300

    # Used when the About-Us record is missing or incomplete
    SITE_COMPANY_NAME = os.getenv("SITE_COMPANY_NAME", "A S Gupta & Co")
    SITE_PHONE = os.getenv("SITE_PHONE", "+919034059226")
    SITE_EMAIL = os.getenv("SITE_EMAIL", "info@caanshulgupta.com")
    SITE_ADDRESS = os.getenv("SITE_ADDRESS", "")
    SITE_WORKING_HOURS = os.getenv("SITE_WORKING_HOURS", "Mon - Sat: 9:00 AM - 6:00 PM")

    # Icon choices offered by the admin forms
    SERVICE_ICONS = [
        "Calculator", "FileText", "TrendingUp", "Shield", "Users", "Building", "Receipt", "PieChart",
        "Briefcase", "DollarSign", "CreditCard", "BarChart", "Globe", "Scale", "BookOpen", "Award",
    ]
    VALUE_ICONS = ["Shield", "Target", "Heart", "TrendingUp", "Award", "Users", "Clock", "Star", "CheckCircle", "Lightbulb"]


def config_value(cfg: Any, name: str) -> Any:
    """Read a knob from the Config class or a Flask config mapping."""
    return cfg[name] if isinstance(cfg, Mapping) else getattr(cfg, name)


def max_upload_bytes(cfg: Any = Config) -> int:
    """Upload size cap in bytes."""
    return int(config_value(cfg, "MAX_UPLOAD_MB")) * 1024 * 1024
