"""Field rules for the profile form.

Every editable field maps to one :class:`FieldRule`. Checking a draft runs
every rule independently, so one bad field never hides another.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from harmoniq.exceptions import ValidationError
from harmoniq.schemas.profile import (
    DIET_PREFERENCES,
    FAMILY_STATUSES,
    LIVING_ARRANGEMENTS,
    DietPreference,
    FamilyStatus,
    FreeText,
    LivingArrangement,
    ProfileAge,
    ProfileDraft,
    ProfileField,
    ProfileSubmission,
    ShortText,
    SportsActivities,
    TimeOfDay,
)


FieldErrors = dict[ProfileField, list[str]]

INVALID_VALUE = "Invalid value"


@dataclass(frozen=True)
class FieldRule:
    adapter: TypeAdapter
    messages: Mapping[str, str]

    def check(self, value: Any) -> list[str]:
        try:
            self.adapter.validate_python(value)
        except PydanticValidationError as exc:
            found: list[str] = []
            for error in exc.errors():
                message = self.messages.get(error["type"], INVALID_VALUE)
                if message not in found:
                    found.append(message)
            return found
        return []


def _short_text_rule(label: str) -> FieldRule:
    return FieldRule(
        adapter=TypeAdapter(ShortText),
        messages={
            "string_type": f"{label} must be text",
            "string_too_short": f"{label} must be at least 2 characters long",
        },
    )


def _time_rule() -> FieldRule:
    return FieldRule(
        adapter=TypeAdapter(TimeOfDay),
        messages={
            "string_type": "Time must be text",
            "string_pattern_mismatch": "Invalid time format, expected HH:MM",
        },
    )


def _choice_rule(choice_type: Any, choices: Iterable[str]) -> FieldRule:
    return FieldRule(
        adapter=TypeAdapter(choice_type),
        messages={"literal_error": "Choose one of: " + ", ".join(choices)},
    )


def _free_text_rule() -> FieldRule:
    return FieldRule(adapter=TypeAdapter(FreeText), messages={"string_type": "Must be text"})


FIELD_RULES: dict[ProfileField, FieldRule] = {
    ProfileField.NAME: _short_text_rule("Name"),
    ProfileField.AGE: FieldRule(
        adapter=TypeAdapter(ProfileAge),
        messages={
            "int_type": "Age must be a whole number",
            "greater_than_equal": "You must be at least 18 years old",
            "less_than_equal": "Invalid age",
        },
    ),
    ProfileField.OCCUPATION: _short_text_rule("Occupation"),
    ProfileField.LIVING_ARRANGEMENT: _choice_rule(LivingArrangement, LIVING_ARRANGEMENTS),
    ProfileField.FAMILY_STATUS: _choice_rule(FamilyStatus, FAMILY_STATUSES),
    ProfileField.WAKE_UP_TIME: _time_rule(),
    ProfileField.SLEEP_TIME: _time_rule(),
    ProfileField.WORK_HOURS: _free_text_rule(),
    ProfileField.DIET_PREFERENCE: _choice_rule(DietPreference, DIET_PREFERENCES),
    ProfileField.HOBBIES: _free_text_rule(),
    ProfileField.SPORTS_ACTIVITIES: FieldRule(
        adapter=TypeAdapter(SportsActivities),
        messages={
            "list_type": "Select activities from the list",
            "string_type": "Each activity must be text",
        },
    ),
    ProfileField.HEALTH_GOAL: _free_text_rule(),
    ProfileField.CAREER_GOAL: _free_text_rule(),
    ProfileField.PERSONAL_GOAL: _free_text_rule(),
}


def validate_field(field: ProfileField, value: Any) -> list[str]:
    return FIELD_RULES[field].check(value)


def validate_draft(draft: ProfileDraft) -> FieldErrors:
    errors: FieldErrors = {}
    for field, rule in FIELD_RULES.items():
        messages = rule.check(draft.get(field))
        if messages:
            errors[field] = messages
    return errors


def require_valid(draft: ProfileDraft) -> ProfileSubmission:
    """Return the submission for a fully valid draft, or raise with every field error."""
    errors = validate_draft(draft)
    if errors:
        raise ValidationError(errors)
    return ProfileSubmission(**{field.value: draft.get(field) for field in ProfileField})


def toggle_sport_activity(activities: Any, activity: str, checked: bool | None = None) -> list[str]:
    """Add ``activity`` when absent, otherwise drop every occurrence of it.

    ``checked`` forces the direction, as a checkbox event would.
    """
    current = list(activities) if isinstance(activities, (list, tuple)) else []
    if checked is None:
        checked = activity not in current
    if checked:
        return current if activity in current else [*current, activity]
    return [item for item in current if item != activity]


def errors_by_api_name(errors: Mapping[ProfileField, list[str]]) -> dict[str, list[str]]:
    return {field.api_name: list(messages) for field, messages in errors.items()}
