from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel


LivingArrangement = Literal["Apartment", "House", "Shared housing", "Other"]
FamilyStatus = Literal["Single", "In a relationship", "Married", "With children"]
DietPreference = Literal["Omnivore", "Vegetarian", "Vegan", "Other"]

LIVING_ARRANGEMENTS: tuple[str, ...] = get_args(LivingArrangement)
FAMILY_STATUSES: tuple[str, ...] = get_args(FamilyStatus)
DIET_PREFERENCES: tuple[str, ...] = get_args(DietPreference)

# Offered as checkboxes; any string is accepted.
SUGGESTED_SPORTS: tuple[str, ...] = ("Running", "Yoga", "Weight training", "Swimming", "Other")

TIME_OF_DAY_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"

ShortText = Annotated[str, StringConstraints(strict=True, min_length=2)]
ProfileAge = Annotated[int, Field(strict=True, ge=18, le=120)]
TimeOfDay = Annotated[str, StringConstraints(strict=True, pattern=TIME_OF_DAY_PATTERN)]
FreeText = Annotated[str, StringConstraints(strict=True)]
SportsActivities = list[FreeText]


class ProfileField(str, Enum):
    NAME = "name"
    AGE = "age"
    OCCUPATION = "occupation"
    LIVING_ARRANGEMENT = "living_arrangement"
    FAMILY_STATUS = "family_status"
    WAKE_UP_TIME = "wake_up_time"
    SLEEP_TIME = "sleep_time"
    WORK_HOURS = "work_hours"
    DIET_PREFERENCE = "diet_preference"
    HOBBIES = "hobbies"
    SPORTS_ACTIVITIES = "sports_activities"
    HEALTH_GOAL = "health_goal"
    CAREER_GOAL = "career_goal"
    PERSONAL_GOAL = "personal_goal"

    @property
    def api_name(self) -> str:
        return to_camel(self.value)

    @classmethod
    def parse(cls, key: str) -> "ProfileField":
        """Accept either the column name or the camelCase API name."""
        for field in cls:
            if key in (field.value, field.api_name):
                return field
        raise ValueError(f"Unknown profile field: {key!r}")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserProfileRecord(_CamelModel):
    """A profile row as confirmed by the store. Placeholder rows leave attributes null."""

    id: str
    user_id: str
    name: str | None = None
    age: int | None = None
    occupation: str | None = None
    living_arrangement: str | None = None
    family_status: str | None = None
    wake_up_time: str | None = None
    sleep_time: str | None = None
    work_hours: str | None = None
    diet_preference: str | None = None
    hobbies: str | None = None
    sports_activities: list[str] = Field(default_factory=list)
    health_goal: str | None = None
    career_goal: str | None = None
    personal_goal: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def stringify_keys(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("sports_activities", mode="before")
    @classmethod
    def null_sports_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ProfileDraft(_CamelModel):
    """Unconfirmed profile values exactly as the user entered them.

    Nothing is validated on assignment; the draft is allowed to hold an age of
    17 or a time of "25:00" until validation reports it.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: Any = ""
    age: Any = 18
    occupation: Any = ""
    living_arrangement: Any = "Apartment"
    family_status: Any = "Single"
    wake_up_time: Any = ""
    sleep_time: Any = ""
    work_hours: Any = ""
    diet_preference: Any = "Omnivore"
    hobbies: Any = ""
    sports_activities: Any = Field(default_factory=list)
    health_goal: Any = ""
    career_goal: Any = ""
    personal_goal: Any = ""

    @classmethod
    def from_record(cls, record: UserProfileRecord | None) -> "ProfileDraft":
        if record is None:
            return cls()
        values = {}
        for field in ProfileField:
            value = getattr(record, field.value)
            if value is not None:
                values[field.value] = list(value) if field is ProfileField.SPORTS_ACTIVITIES else value
        return cls(**values)

    def get(self, field: ProfileField) -> Any:
        return getattr(self, field.value)

    def with_value(self, field: ProfileField, value: Any) -> "ProfileDraft":
        return self.model_copy(update={field.value: value})


class ProfileSubmission(_CamelModel):
    """A draft that passed every field rule, ready to be upserted."""

    name: ShortText
    age: ProfileAge
    occupation: ShortText
    living_arrangement: LivingArrangement
    family_status: FamilyStatus
    wake_up_time: TimeOfDay
    sleep_time: TimeOfDay
    work_hours: FreeText
    diet_preference: DietPreference
    hobbies: FreeText
    sports_activities: SportsActivities
    health_goal: FreeText
    career_goal: FreeText
    personal_goal: FreeText

    def to_row(self, user_id: str) -> dict[str, Any]:
        row = self.model_dump(mode="json")
        row["user_id"] = user_id
        return row


def placeholder_row(user_id: str) -> dict[str, Any]:
    return {"user_id": user_id}


class ProfileSaveResponse(_CamelModel):
    profile: UserProfileRecord
    next: str | None = None


class ProfileValidationResponse(_CamelModel):
    valid: bool
    field_errors: dict[str, list[str]] = Field(default_factory=dict)


class ProfileOptions(_CamelModel):
    living_arrangements: list[str] = Field(default_factory=lambda: list(LIVING_ARRANGEMENTS))
    family_statuses: list[str] = Field(default_factory=lambda: list(FAMILY_STATUSES))
    diet_preferences: list[str] = Field(default_factory=lambda: list(DIET_PREFERENCES))
    suggested_sports: list[str] = Field(default_factory=lambda: list(SUGGESTED_SPORTS))
