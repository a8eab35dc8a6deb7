from harmoniq.schemas.auth import AuthResponse, CredentialsRequest, Identity, PublicUser
from harmoniq.schemas.profile import (
    ProfileDraft,
    ProfileField,
    ProfileOptions,
    ProfileSaveResponse,
    ProfileSubmission,
    ProfileValidationResponse,
    UserProfileRecord,
)
from harmoniq.schemas.session import ContinueResponse, SessionResponse

__all__ = [
    "AuthResponse",
    "CredentialsRequest",
    "Identity",
    "PublicUser",
    "ProfileDraft",
    "ProfileField",
    "ProfileOptions",
    "ProfileSaveResponse",
    "ProfileSubmission",
    "ProfileValidationResponse",
    "UserProfileRecord",
    "ContinueResponse",
    "SessionResponse",
]
