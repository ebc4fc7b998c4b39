from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from src.rank.eligibility import clean_text, get_field, normalize_candidates, parse_float

ALLOWED_EMAIL_DOMAINS = ("spelman.edu", "morehouse.edu")
_INSTITUTIONAL_EMAIL_PATTERN = re.compile(
    r"@(" + "|".join(re.escape(domain) for domain in ALLOWED_EMAIL_DOMAINS) + r")$"
)

MAJORS = (
    "Art",
    "Art History",
    "Biochemistry",
    "Biology",
    "Chemistry",
    "Comparative Womens Studies",
    "Computer Science",
    "Dance Performance and Choreography",
    "Documentary Filmmaking",
    "Dual Degree Engineering",
    "Economics",
    "Elementary Education",
    "Education Studies",
    "English",
    "Environmental Sciences",
    "Environmental Studies",
    "French",
    "Health Science",
    "History",
    "International Studies",
    "Mathematics",
    "Music",
    "Philosophy",
    "Photography",
    "Physics",
    "Political Science",
    "Psychology",
    "Religious Studies",
    "Spanish",
    "Sociology",
    "Sociology and Anthropology",
    "Theatre and Performance",
)

CAREER_INTERESTS = (
    "Medicine",
    "Law",
    "Technology",
    "Education",
    "Entrepreneurship",
    "Research",
    "Business",
    "Public Service",
    "Arts",
    "Engineering",
    "Healthcare",
    "Non-Profit",
    "Finance",
    "Media",
    "Government",
    "Video Game Development",
    "Marketing",
    "Construction Management",
    "Human Resources",
    "Animation",
    "Script Writing",
    "Storytelling",
    "Software Engineering",
    "Audio and Music",
    "STEM",
)

CLASSIFICATIONS = ("First Year", "Sophomore", "Junior", "Senior")


class ProfileValidationError(ValueError):
    """Raised when a profile payload is missing required identity fields."""


def is_institutional_email(email: Any) -> bool:
    if not isinstance(email, str):
        return False
    return bool(_INSTITUTIONAL_EMAIL_PATTERN.search(email.strip().lower()))


def _parse_grad_year(value: Any) -> int | None:
    parsed = parse_float(value)
    if parsed is None:
        return None
    return int(parsed)


@dataclass(slots=True)
class UserProfile:
    user_id: str | None = None
    name: str = ""
    major: str = ""
    gpa: float | None = None
    grad_year: int | None = None
    classification: str = ""
    selected_interests: list[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> UserProfile:
        values = payload or {}
        user_id = clean_text(get_field(values, "user_id", "id"))
        return cls(
            user_id=user_id or None,
            name=clean_text(get_field(values, "name")),
            major=clean_text(get_field(values, "major")),
            gpa=parse_float(get_field(values, "gpa")),
            grad_year=_parse_grad_year(get_field(values, "grad_year", "gradYear")),
            classification=clean_text(get_field(values, "classification")),
            selected_interests=normalize_candidates(
                get_field(values, "selected_interests", "selectedInterests", "career_interests")
            ),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "major": self.major,
            "gpa": self.gpa,
            "gradYear": self.grad_year,
            "selectedInterests": list(self.selected_interests),
            "classification": self.classification,
        }

    @property
    def is_complete(self) -> bool:
        return bool(
            self.name
            and self.major
            and self.gpa is not None
            and self.grad_year is not None
            and self.selected_interests
        )


def validate_profile_payload(payload: Mapping[str, Any] | None) -> UserProfile:
    profile = UserProfile.from_mapping(payload)
    if not profile.user_id or not profile.name:
        raise ProfileValidationError("id and name are required.")
    return profile
