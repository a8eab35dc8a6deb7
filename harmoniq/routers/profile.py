from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from harmoniq.auth.deps import get_current_identity, get_navigator, get_profile_cache, get_profile_store, get_session_gate
from harmoniq.exceptions import NotAuthenticatedError, StoreError, ValidationError
from harmoniq.forms.controller import FormState, ProfileFormController
from harmoniq.forms.validation import errors_by_api_name, validate_field
from harmoniq.navigation import RecordingNavigator
from harmoniq.schemas.auth import Identity
from harmoniq.schemas.profile import (
    ProfileField,
    ProfileOptions,
    ProfileSaveResponse,
    ProfileValidationResponse,
    UserProfileRecord,
)
from harmoniq.services.profile_cache import ProfileCache
from harmoniq.services.session_gate import SessionGate
from harmoniq.stores.base import ProfileStore


router = APIRouter(prefix="/profile", tags=["profile"])

# Sent back by clients that echo a whole record; assigned by the store, never edited.
READ_ONLY_KEYS = {"id", "user_id", "userId", "created_at", "createdAt", "updated_at", "updatedAt"}


def _parse_edits(payload: dict[str, Any]) -> list[tuple[ProfileField, Any]]:
    edits: list[tuple[ProfileField, Any]] = []
    unknown: list[str] = []
    for key, value in payload.items():
        if key in READ_ONLY_KEYS:
            continue
        try:
            edits.append((ProfileField.parse(key), value))
        except ValueError:
            unknown.append(key)
    if unknown:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown profile fields: {', '.join(sorted(unknown))}",
        )
    return edits


@router.get("/options", response_model=ProfileOptions)
def get_profile_options():
    return ProfileOptions()


@router.get("", response_model=UserProfileRecord)
async def get_profile(
    identity: Identity = Depends(get_current_identity),
    gate: SessionGate = Depends(get_session_gate),
):
    profile = await gate.load_profile(identity)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found.")
    return profile


@router.post("/validate", response_model=ProfileValidationResponse)
def validate_profile_fields(payload: dict[str, Any] = Body(...)):
    errors = {field: validate_field(field, value) for field, value in _parse_edits(payload)}
    errors = {field: messages for field, messages in errors.items() if messages}
    return ProfileValidationResponse(valid=not errors, field_errors=errors_by_api_name(errors))


@router.put("", response_model=ProfileSaveResponse)
async def save_profile(
    payload: dict[str, Any] = Body(...),
    identity: Identity = Depends(get_current_identity),
    gate: SessionGate = Depends(get_session_gate),
    store: ProfileStore = Depends(get_profile_store),
    cache: ProfileCache = Depends(get_profile_cache),
    navigator: RecordingNavigator = Depends(get_navigator),
):
    edits = _parse_edits(payload)
    baseline = await gate.load_profile(identity)

    controller = ProfileFormController(
        identity=identity,
        store=store,
        baseline=baseline,
        cache=cache,
        navigator=navigator,
    )
    for field, value in edits:
        controller.edit(field, value)

    state = await controller.submit()
    if state is FormState.SUCCESS:
        return ProfileSaveResponse(profile=controller.baseline, next=navigator.current)
    if controller.field_errors:
        raise ValidationError(controller.field_errors)
    if controller.requires_reauth:
        raise NotAuthenticatedError(controller.submission_error or NotAuthenticatedError().message)
    raise StoreError(controller.submission_error or "Could not save the profile.")
