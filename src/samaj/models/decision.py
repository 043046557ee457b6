"""
samaj/models/decision.py — Access gate outcomes.

``Decision`` is a tagged union discriminated on ``kind``:
    • Allow
    • BlurWithUpsell(message, cta_target) — content shown locked with a call to action
    • HideOrRedirect(target, message) — content hidden, caller sent elsewhere
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from samaj.models.enums import Target


class _DecisionBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class Allow(_DecisionBase):
    kind: Literal["allow"] = "allow"

    @property
    def allowed(self) -> bool:
        return True


class BlurWithUpsell(_DecisionBase):
    kind: Literal["blur_with_upsell"] = "blur_with_upsell"
    message: str
    cta_target: Target = Target.REGISTER

    @property
    def allowed(self) -> bool:
        return False


class HideOrRedirect(_DecisionBase):
    kind: Literal["hide_or_redirect"] = "hide_or_redirect"
    target: Target
    message: str = ""

    @property
    def allowed(self) -> bool:
        return False


Decision = Annotated[
    Union[Allow, BlurWithUpsell, HideOrRedirect],
    Field(discriminator="kind"),
]
