"""
samaj/services/access_gate.py — Feature access gate.

``evaluate(feature, session)`` is a pure, synchronous function of the
session snapshot: no I/O, no locking. Denial is a normal return value
(``BlurWithUpsell`` / ``HideOrRedirect``); only an unknown feature raises.

Composition: authentication is checked before verification, so an
anonymous caller gets the "login" variant for every member feature.
The admin dashboard depends on the admin flag alone and sends everyone
else home.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from samaj.exceptions import UnknownFeatureError
from samaj.models.decision import Allow, BlurWithUpsell, Decision, HideOrRedirect
from samaj.models.enums import Feature, Target, UiTreatment
from samaj.models.session import SessionState

logger = logging.getLogger(__name__)


class Requirement(str, Enum):
    ALWAYS = "always"
    AUTHENTICATED = "authenticated"
    VERIFIED = "verified"
    ADMIN = "admin"


@dataclass(frozen=True)
class FeatureRule:
    requirement: Requirement
    # Decision and rendering for an authenticated caller who fails the requirement.
    denied: Decision | None = None
    denied_treatment: UiTreatment = UiTreatment.RENDER


_LOGIN = HideOrRedirect(target=Target.LOGIN, message="Please login to continue")
_UPSELL = "Become a verified member to unlock this content"

FEATURE_RULES: dict[Feature, FeatureRule] = {
    Feature.PANDIT_DIRECTORY: FeatureRule(Requirement.ALWAYS),
    Feature.PANDIT_CONTACT: FeatureRule(
        Requirement.VERIFIED,
        BlurWithUpsell(
            message="Please register and verify your lineage to contact our Panditji directly.",
            cta_target=Target.REGISTER,
        ),
        UiTreatment.BLUR,
    ),
    Feature.PANDIT_BOOKING: FeatureRule(
        Requirement.VERIFIED,
        BlurWithUpsell(
            message="Please register and verify your lineage to book a Panditji.",
            cta_target=Target.REGISTER,
        ),
        UiTreatment.BLUR,
    ),
    Feature.PANDIT_REVIEW: FeatureRule(
        Requirement.AUTHENTICATED, _LOGIN, UiTreatment.REDIRECT,
    ),
    Feature.EVENT_LISTING: FeatureRule(Requirement.ALWAYS),
    Feature.EVENT_REGISTRATION: FeatureRule(
        Requirement.VERIFIED,
        BlurWithUpsell(message=_UPSELL, cta_target=Target.REGISTER),
        UiTreatment.BLUR,
    ),
    Feature.DONATIONS: FeatureRule(
        Requirement.VERIFIED,
        HideOrRedirect(
            target=Target.REGISTER,
            message="Donations are open to verified members. Complete your verification to contribute.",
        ),
        UiTreatment.FULL_PAGE_BLOCK,
    ),
    Feature.GALLERY_THUMBNAILS: FeatureRule(Requirement.ALWAYS),
    Feature.GALLERY_DOWNLOAD: FeatureRule(
        Requirement.VERIFIED,
        BlurWithUpsell(
            message="High-resolution downloads available for verified members only",
            cta_target=Target.REGISTER,
        ),
        UiTreatment.BANNER,
    ),
    Feature.LIVE_STREAM: FeatureRule(
        Requirement.VERIFIED,
        BlurWithUpsell(
            message=(
                "Live streaming is available exclusively for verified community members. "
                "Complete your verification to watch."
            ),
            cta_target=Target.REGISTER,
        ),
        UiTreatment.LOCK_PANEL,
    ),
    Feature.ADMIN_DASHBOARD: FeatureRule(
        Requirement.ADMIN,
        HideOrRedirect(target=Target.HOME, message="Admin access required"),
        UiTreatment.REDIRECT,
    ),
}


def parse_feature(feature: Feature | str) -> Feature:
    """Feature for a name; UnknownFeatureError otherwise."""
    try:
        return Feature(feature)
    except ValueError:
        raise UnknownFeatureError(str(feature)) from None


def _rule(feature: Feature | str) -> tuple[Feature, FeatureRule]:
    key = parse_feature(feature)
    return key, FEATURE_RULES[key]


def evaluate(feature: Feature | str, session: SessionState) -> Decision:
    """
    Decide access to ``feature`` for ``session``.

    Raises:
        UnknownFeatureError: ``feature`` is not a known feature name.
    """
    key, rule = _rule(feature)

    if rule.requirement is Requirement.ALWAYS:
        return Allow()

    if rule.requirement is Requirement.ADMIN:
        if session.authenticated and session.is_admin:
            return Allow()
        decision = rule.denied
    elif not session.authenticated:
        decision = _LOGIN
    elif rule.requirement is Requirement.AUTHENTICATED or session.verified:
        return Allow()
    else:
        decision = rule.denied

    logger.debug("Access to %s denied for %s: %s", key.value, session.member_id, decision.kind)
    return decision


def evaluate_all(session: SessionState) -> dict[Feature, Decision]:
    """Decision for every known feature."""
    return {feature: evaluate(feature, session) for feature in Feature}


def ui_treatment(feature: Feature | str, decision: Decision) -> UiTreatment:
    """
    How a page renders ``decision`` for ``feature``.

    The mapping depends on the feature only, so the same feature looks the
    same on every page it appears on.
    """
    _, rule = _rule(feature)
    if isinstance(decision, Allow):
        return UiTreatment.RENDER
    if isinstance(decision, HideOrRedirect) and decision.target is Target.LOGIN:
        return UiTreatment.REDIRECT
    return rule.denied_treatment
