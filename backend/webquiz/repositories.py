"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (users,
roles, quizzes, completions). Repositories return SQLModel objects.
Methods named `create`/`save` commit; the others only add or flush so a
service can group several of them into one transaction.
"""

from typing import List, Optional, Tuple
from sqlmodel import Session, select
from sqlalchemy import func
from . import models


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance."""
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username (email) or `None` if not found."""
        stmt = select(models.User).where(models.User.email == username)
        return self.session.exec(stmt).first()

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)

    def flush(self):
        self.session.flush()


class RoleRepository:
    """Lookup and lazy creation of `Role` rows."""
    def __init__(self, session: Session):
        self.session = session

    def get_or_create(self, name: models.RoleName) -> models.Role:
        """Return the role row for `name`, adding it if missing (no commit)."""
        stmt = select(models.Role).where(models.Role.name == name)
        role = self.session.exec(stmt).first()
        if role is None:
            role = models.Role(name=name)
            self.session.add(role)
            self.session.flush()
        return role


class QuizRepository:
    """Persist and page through `Quiz` records."""
    def __init__(self, session: Session):
        self.session = session

    def save(self, quiz: models.Quiz) -> models.Quiz:
        """Commit pending changes and return the refreshed quiz."""
        self.session.add(quiz)
        self.session.commit()
        self.session.refresh(quiz)
        return quiz

    def get(self, quiz_id: int) -> Optional[models.Quiz]:
        """Fetch a quiz by id."""
        return self.session.get(models.Quiz, quiz_id)

    def list_page(self, page: int, size: int) -> Tuple[List[models.Quiz], int]:
        """Return one page of quizzes ordered by id plus the total count."""
        stmt = select(models.Quiz).order_by(models.Quiz.id).offset(page * size).limit(size)
        total = self.session.exec(select(func.count()).select_from(models.Quiz)).one()
        return self.session.exec(stmt).all(), total


class CompletionRepository:
    """Append and query `QuizCompletion` records."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, completion: models.QuizCompletion) -> models.QuizCompletion:
        self.session.add(completion)
        self.session.commit()
        self.session.refresh(completion)
        return completion

    def list_page_for_user(self, user_id: int, page: int, size: int) -> Tuple[List[models.QuizCompletion], int]:
        """Return the user's completions, most recent first, plus the total count.

        Records sharing a timestamp keep insertion order (newest id first).
        """
        stmt = (
            select(models.QuizCompletion)
            .where(models.QuizCompletion.user_id == user_id)
            .order_by(models.QuizCompletion.completed_at.desc(), models.QuizCompletion.id.desc())
            .offset(page * size)
            .limit(size)
        )
        count_stmt = select(func.count()).select_from(models.QuizCompletion).where(
            models.QuizCompletion.user_id == user_id
        )
        total = self.session.exec(count_stmt).one()
        return self.session.exec(stmt).all(), total

    def list_for_quiz(self, quiz_id: int) -> List[models.QuizCompletion]:
        stmt = select(models.QuizCompletion).where(models.QuizCompletion.quiz_id == quiz_id)
        return self.session.exec(stmt).all()

    def delete_for_quiz(self, quiz_id: int) -> int:
        """Delete every completion of `quiz_id` and flush (no commit)."""
        rows = self.list_for_quiz(quiz_id)
        for row in rows:
            self.session.delete(row)
        self.session.flush()
        return len(rows)
