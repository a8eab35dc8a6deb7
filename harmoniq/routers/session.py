from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from harmoniq.auth.deps import get_session_gate
from harmoniq.schemas.auth import public_user
from harmoniq.schemas.session import ContinueResponse, SessionResponse
from harmoniq.services.session_gate import NoSession, SessionGate, SessionWithProfile


router = APIRouter(prefix="/session", tags=["session"])

SESSION_CHOICES = ["continue", "sign_out"]


@router.get("", response_model=SessionResponse)
async def get_session_state(gate: SessionGate = Depends(get_session_gate)):
    outcome = await gate.resolve()
    if isinstance(outcome, NoSession):
        return SessionResponse(status=outcome.status)
    return SessionResponse(
        status=outcome.status,
        user=public_user(outcome.identity),
        profile=outcome.profile if isinstance(outcome, SessionWithProfile) else None,
        choices=SESSION_CHOICES,
    )


@router.post("/continue", response_model=ContinueResponse)
async def continue_session(gate: SessionGate = Depends(get_session_gate)):
    outcome = await gate.resolve()
    if isinstance(outcome, NoSession):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="There is no session to continue.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ContinueResponse(status=outcome.status, next=gate.continue_session(outcome))
