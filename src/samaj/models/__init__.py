"""
samaj.models — Data models of the membership domain.

Re-exports the main classes:
    from samaj.models import Profile, SessionState, Allow
"""

from samaj.models.enums import (  # noqa: F401
    AppRole,
    Feature,
    Target,
    UiTreatment,
    VerificationStatus,
)
from samaj.models.profile import (  # noqa: F401
    NotificationSettings,
    Profile,
    ProfileUpdate,
    RejectRequest,
    VerificationSubmit,
)
from samaj.models.decision import Allow, BlurWithUpsell, Decision, HideOrRedirect  # noqa: F401
from samaj.models.session import (  # noqa: F401
    ANONYMOUS,
    LoginRequest,
    SessionRead,
    SessionState,
    SignupRequest,
    TokenPair,
)
