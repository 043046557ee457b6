"""
samaj/models/enums.py — Enumerations of the membership domain.

    • VerificationStatus — lifecycle of a member profile
    • AppRole — role rows held by a member
    • Feature — every gated surface of the portal
    • Target — where a denied caller is sent next
    • UiTreatment — how a page renders a decision
"""

from enum import Enum


class VerificationStatus(str, Enum):
    """Lifecycle state of a member profile."""
    NONE = "none"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class AppRole(str, Enum):
    """Role row of a member. Only ADMIN is consulted by the gate."""
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class Feature(str, Enum):
    """Gated feature surfaces."""
    PANDIT_DIRECTORY = "pandit_directory"
    PANDIT_CONTACT = "pandit_contact"
    PANDIT_BOOKING = "pandit_booking"
    PANDIT_REVIEW = "pandit_review"
    EVENT_LISTING = "event_listing"
    EVENT_REGISTRATION = "event_registration"
    DONATIONS = "donations"
    GALLERY_THUMBNAILS = "gallery_thumbnails"
    GALLERY_DOWNLOAD = "gallery_download"
    LIVE_STREAM = "live_stream"
    ADMIN_DASHBOARD = "admin_dashboard"


class Target(str, Enum):
    """Next action offered to a denied caller."""
    LOGIN = "login"
    REGISTER = "register"
    HOME = "home"


class UiTreatment(str, Enum):
    """Rendering of a decision on a page."""
    RENDER = "render"
    BLUR = "blur"
    LOCK_PANEL = "lock_panel"
    BANNER = "banner"
    REDIRECT = "redirect"
    FULL_PAGE_BLOCK = "full_page_block"
