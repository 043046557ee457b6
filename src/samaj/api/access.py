"""
samaj/api/access.py — Access gate decisions for the calling session.

Pages ask once per feature and render the returned treatment; the same
feature always maps to the same treatment.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from samaj.dependencies import get_session
from samaj.models.decision import Decision
from samaj.models.enums import Feature, UiTreatment
from samaj.models.session import SessionState
from samaj.services import access_gate

router = APIRouter(prefix="/access", tags=["access"])


class AccessRead(BaseModel):
    feature: Feature
    decision: Decision
    treatment: UiTreatment


def _read(feature: Feature, session: SessionState) -> AccessRead:
    decision = access_gate.evaluate(feature, session)
    return AccessRead(
        feature=feature,
        decision=decision,
        treatment=access_gate.ui_treatment(feature, decision),
    )


@router.get("", response_model=list[AccessRead], summary="Decisions for every feature")
async def all_features(session: SessionState = Depends(get_session)):
    return [
        AccessRead(feature=f, decision=d, treatment=access_gate.ui_treatment(f, d))
        for f, d in access_gate.evaluate_all(session).items()
    ]


@router.get("/{feature}", response_model=AccessRead, summary="Decision for one feature")
async def one_feature(feature: str, session: SessionState = Depends(get_session)):
    """Unknown feature names answer with the programmer-error status."""
    return _read(access_gate.parse_feature(feature), session)
