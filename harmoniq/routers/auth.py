from __future__ import annotations

from fastapi import APIRouter, Depends, status

from harmoniq.auth.deps import get_navigator, get_session_gate
from harmoniq.navigation import LOGIN_PATH, RecordingNavigator
from harmoniq.schemas.auth import AuthResponse, CredentialsRequest, public_user
from harmoniq.services.session_gate import SessionGate


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: CredentialsRequest,
    gate: SessionGate = Depends(get_session_gate),
    navigator: RecordingNavigator = Depends(get_navigator),
):
    identity = await gate.sign_in(payload.email, payload.password)
    return AuthResponse(
        access_token=identity.access_token,
        user=public_user(identity),
        next=navigator.current,
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: CredentialsRequest,
    gate: SessionGate = Depends(get_session_gate),
    navigator: RecordingNavigator = Depends(get_navigator),
):
    identity = await gate.sign_up(payload.email, payload.password)
    return AuthResponse(
        status="authenticated" if identity.access_token else "confirmation_required",
        access_token=identity.access_token,
        user=public_user(identity),
        next=navigator.current,
    )


@router.post("/logout")
async def logout(gate: SessionGate = Depends(get_session_gate)) -> dict:
    outcome = await gate.end_session()
    return {"status": outcome.status, "next": LOGIN_PATH}
