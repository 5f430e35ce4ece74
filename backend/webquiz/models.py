"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table and uses relationships where appropriate.
"""

import enum
from typing import Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone
from typing import List


class RoleName(str, enum.Enum):
    """Closed vocabulary of role labels."""
    USER = "USER"
    ADMIN = "ADMIN"


class UserRoleLink(SQLModel, table=True):
    """Association table between users and roles."""
    user_id: Optional[int] = Field(default=None, foreign_key='user.id', primary_key=True)
    role_id: Optional[int] = Field(default=None, foreign_key='role.id', primary_key=True)


class Role(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: RoleName = Field(index=True, unique=True)
    users: List['User'] = Relationship(back_populates='roles', link_model=UserRoleLink)


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `email`: unique address, also used as the login name
    - `password_hash`: hashed password string (never store plaintext)
    - `quizzes`: quizzes created by this user; removing one from the
      list deletes the quiz row
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, nullable=False, unique=True)
    password_hash: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    roles: List[Role] = Relationship(back_populates='users', link_model=UserRoleLink)
    quizzes: List['Quiz'] = Relationship(
        back_populates='owner',
        sa_relationship_kwargs={'cascade': 'all, delete-orphan'},
    )

    @property
    def username(self) -> str:
        return self.email

    def has_role(self, role: RoleName) -> bool:
        return any(r.name == role for r in self.roles)


class Quiz(SQLModel, table=True):
    """A multiple-choice question created by a user.

    `answer` holds the indices of the correct options. It is accepted on
    creation but never sent back to clients; a quiz created without one
    stores an empty list.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    text: str
    options: List[str] = Field(sa_column=Column(JSON, nullable=False))
    answer: Optional[List[int]] = Field(default=None, sa_column=Column(JSON(none_as_null=True), nullable=True))
    owner_id: Optional[int] = Field(default=None, foreign_key='user.id', index=True, nullable=False)
    owner: Optional[User] = Relationship(back_populates='quizzes')


class QuizCompletion(SQLModel, table=True):
    """A timestamped record of a user solving a quiz correctly."""
    id: Optional[int] = Field(default=None, primary_key=True)
    quiz_id: int = Field(foreign_key='quiz.id', index=True)
    user_id: int = Field(foreign_key='user.id', index=True)
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    quiz: Optional[Quiz] = Relationship()
    user: Optional[User] = Relationship()
