"""Student profile model and validation helpers."""

from src.profile.schema import (
    ALLOWED_EMAIL_DOMAINS,
    CAREER_INTERESTS,
    CLASSIFICATIONS,
    MAJORS,
    ProfileValidationError,
    UserProfile,
    is_institutional_email,
    validate_profile_payload,
)

__all__ = [
    "ALLOWED_EMAIL_DOMAINS",
    "CAREER_INTERESTS",
    "CLASSIFICATIONS",
    "MAJORS",
    "ProfileValidationError",
    "UserProfile",
    "is_institutional_email",
    "validate_profile_payload",
]
