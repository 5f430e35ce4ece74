"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. Output models use camelCase keys on the
wire; Python code always uses the snake_case field names.
"""

import re
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Generic, List, Optional, TypeVar

T = TypeVar('T')

EMAIL_PATTERN = re.compile(
    r"[-a-z0-9!#$%&'*+/=?^_`{|}~]+"
    r"(?:\.[-a-z0-9!#$%&'*+/=?^_`{|}~]+)*"
    r"@(?:[a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?\.)*(?:aero|arpa|asia|biz|cat|com|coop|edu|gov|"
    r"info|int|jobs|mil|mobi|museum|name|net|org|pro|tel|travel|[a-z][a-z])"
)


class UserIn(BaseModel):
    """Payload for the registration endpoint."""
    email: str
    password: str = Field(min_length=5, max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.fullmatch(value):
            raise ValueError('must be a well-formed email address')
        return value


class QuizIn(BaseModel):
    """Request format for creating a quiz."""
    title: str
    text: str
    options: List[str] = Field(min_length=2)
    answer: Optional[List[int]] = None

    @field_validator('title', 'text')
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('must not be blank')
        return value


class QuizOut(BaseModel):
    """Public view of a quiz; the correct answer is deliberately absent."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    text: str
    options: List[str]


class AnswerIn(BaseModel):
    """Submitted option indices for a quiz."""
    answer: Optional[List[int]] = None


class QuizResult(BaseModel):
    """Outcome of a solve attempt with its fixed feedback text."""
    model_config = ConfigDict(frozen=True)

    success: bool
    feedback: str


class CompletionOut(BaseModel):
    """A completion record as seen by its owner.

    `id` carries the solved quiz's identifier, not the record's own.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    quiz_id: int = Field(alias='id')
    completed_at: datetime


class Page(BaseModel, Generic[T]):
    """A fixed-size slice of an ordered result set."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content: List[T]
    number: int
    size: int
    total_elements: int
    total_pages: int
    number_of_elements: int
    first: bool
    last: bool
    empty: bool

    @classmethod
    def build(cls, content: List[T], number: int, size: int, total_elements: int) -> 'Page[T]':
        total_pages = -(-total_elements // size) if size else 0
        return cls(
            content=content,
            number=number,
            size=size,
            total_elements=total_elements,
            total_pages=total_pages,
            number_of_elements=len(content),
            first=number == 0,
            last=number >= total_pages - 1,
            empty=not content,
        )
