"""
Validated row records for uploaded batches.

Raw CSV rows arrive as loosely-typed dicts of strings. Each row is turned
into one of these records before any business logic runs; a row that
cannot be turned into a record becomes a row-level error.
"""

from datetime import date
from typing import List, Optional

import pydantic
from pydantic import BaseModel, Field, field_validator, model_validator

from resit_portal.errors import ValidationError


def _clean(raw: dict) -> dict:
    """Lowercase/strip header names and turn blank cells into None."""
    cleaned = {}
    for key, value in raw.items():
        if key is None:
            continue
        name = str(key).strip().lstrip("\ufeff").lower()
        if isinstance(value, str):
            value = value.strip()
            if value == "":
                value = None
        cleaned[name] = value
    return cleaned


def _first_error(exc: pydantic.ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{field}: {message}" if field else message


class GradeRow(BaseModel):
    """One line of a grade upload: a student identifier and a grade token."""
    student_id: Optional[int] = Field(None, description="Numeric student id")
    email: Optional[str] = Field(None, description="Student email, used when student_id is absent")
    grade: Optional[str] = Field(None, description="Score 0-100 or DZ")

    @field_validator("student_id", mode="before")
    @classmethod
    def student_id_not_bool(cls, value):
        if isinstance(value, bool):
            raise ValueError("must be a number")
        return value

    @field_validator("grade", mode="before")
    @classmethod
    def grade_as_text(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @model_validator(mode="after")
    def require_identifier(self):
        if self.student_id is None and not self.email:
            raise ValueError("missing student_id or email")
        return self

    @property
    def identifier(self) -> str:
        return str(self.student_id) if self.student_id is not None else self.email

    @classmethod
    def from_mapping(cls, raw: dict) -> "GradeRow":
        try:
            return cls.model_validate(_clean(raw))
        except pydantic.ValidationError as exc:
            raise ValidationError(_first_error(exc))


class ScheduleRow(BaseModel):
    """One line of a resit schedule upload."""
    course_code: str
    exam_date: date
    location: str

    @classmethod
    def from_mapping(cls, raw: dict) -> "ScheduleRow":
        try:
            return cls.model_validate(_clean(raw))
        except pydantic.ValidationError as exc:
            raise ValidationError(_first_error(exc))


class BatchResult(BaseModel):
    """Outcome of a batch upload: rows applied plus one message per failed row."""
    processed: int = 0
    errors: List[str] = Field(default_factory=list)

    def record_success(self):
        self.processed += 1

    def record_error(self, row_number: int, message: str):
        self.errors.append(f"Row {row_number}: {message}")
