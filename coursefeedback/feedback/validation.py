"""
Validation rules for submitted feedback.

All strings are trimmed before length checks. An empty email is the same
as no email. Errors are collected per field (first violation wins) and
raised together as a ValidationError; nothing is partially accepted.
"""

import re
from typing import Any, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, field_validator

from coursefeedback.feedback.errors import ValidationError


NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255
COURSE_MAX_LENGTH = 200
COMMENTS_MAX_LENGTH = 1000
RATING_MIN = 1
RATING_MAX = 5

EMAIL_PATTERN = re.compile(
    r"^(?!\.)(?!.*\.\.)[A-Za-z0-9_'+\-.]*[A-Za-z0-9_+\-]@"
    r"(?:[A-Za-z0-9][A-Za-z0-9\-]*\.)+[A-Za-z]{2,}$"
)

# Message used when a required field is missing entirely
REQUIRED_MESSAGES = {
    "name": "Name is required",
    "course": "Course name is required",
    "rating": "Rating is required",
    "comments": "Comments are required",
}


def _check_text(value: str, required: str, label: str, max_length: int) -> str:
    if not value:
        raise ValueError(required)
    if len(value) > max_length:
        raise ValueError(f"{label} must be at most {max_length} characters")
    return value


class FeedbackSubmission(BaseModel):
    """Caller-supplied fields of a feedback record (no id, no timestamp)."""

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    name: str
    email: Optional[str] = None
    course: str
    rating: int
    comments: str

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _check_text(value, REQUIRED_MESSAGES["name"], "Name", NAME_MAX_LENGTH)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if len(value) > EMAIL_MAX_LENGTH:
            raise ValueError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value

    @field_validator("course")
    @classmethod
    def check_course(cls, value: str) -> str:
        return _check_text(value, REQUIRED_MESSAGES["course"], "Course name", COURSE_MAX_LENGTH)

    @field_validator("rating", mode="before")
    @classmethod
    def check_rating_type(cls, value: Any) -> Any:
        if value is None or value == "":
            raise ValueError(REQUIRED_MESSAGES["rating"])
        if isinstance(value, bool):
            raise ValueError("Rating must be a whole number")
        return value

    @field_validator("rating")
    @classmethod
    def check_rating_range(cls, value: int) -> int:
        if value < RATING_MIN:
            raise ValueError(f"Rating must be at least {RATING_MIN}")
        if value > RATING_MAX:
            raise ValueError(f"Rating must be at most {RATING_MAX}")
        return value

    @field_validator("comments")
    @classmethod
    def check_comments(cls, value: str) -> str:
        return _check_text(value, REQUIRED_MESSAGES["comments"], "Comments", COMMENTS_MAX_LENGTH)


def _message_for(error: dict) -> str:
    """Pick a readable message for one pydantic error entry."""
    field = error["loc"][0] if error["loc"] else ""
    kind = error["type"]

    if kind == "missing":
        return REQUIRED_MESSAGES.get(field, "This field is required")
    if error.get("input") is None and field in REQUIRED_MESSAGES:
        return REQUIRED_MESSAGES[field]
    if kind == "value_error":
        return str(error["ctx"]["error"])
    if field == "rating" and kind.startswith(("int_", "float_")):
        return "Rating must be a whole number"
    if kind.startswith("string_"):
        return f"{str(field).capitalize()} must be text"
    return error["msg"]


def collect_errors(exc: pydantic.ValidationError) -> dict[str, str]:
    """Translate pydantic's error list into one message per field."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "__root__"
        errors.setdefault(field, _message_for(error))
    return errors


def validate_submission(data: Union[dict, FeedbackSubmission]) -> FeedbackSubmission:
    """
    Validate raw input and return a normalized submission.

    Raises:
        ValidationError: with one message per violated field
    """
    if isinstance(data, FeedbackSubmission):
        return data
    if not isinstance(data, dict):
        raise ValidationError({"__root__": "Feedback must be an object"})

    try:
        return FeedbackSubmission.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(collect_errors(e)) from e
