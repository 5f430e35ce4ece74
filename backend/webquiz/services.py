"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories
and domain rules. Services are intentionally thin: they perform
validation, execute domain logic and persist aggregates via
repositories. Each service shares the request's `Session` so that a
multi-step mutation can be committed, or rolled back, as one unit.
"""

import enum
import logging
from passlib.context import CryptContext
from typing import List, Optional
from . import models, repositories, schemas
from sqlmodel import Session

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
PAGE_SIZE = 10
MIN_PASSWORD_LENGTH = 5

RESULT_CORRECT = schemas.QuizResult(success=True, feedback="Congratulations, you solved the quiz correctly!")
RESULT_WRONG = schemas.QuizResult(success=False, feedback="Sorry, your answer is wrong - try again!")

logger = logging.getLogger("webquiz.services")


class QuizNotFound(LookupError):
    """Raised when no quiz exists for the requested id."""


class UserNotFound(LookupError):
    """Raised when no user is registered under the requested username."""


class DeleteOutcome(enum.Enum):
    DELETED = "deleted"
    FORBIDDEN = "forbidden"


def answers_match(stored: Optional[List[int]], submitted: Optional[List[int]]) -> bool:
    """Compare a submitted answer with the stored one.

    Lists must be equal element by element, order included. A quiz
    without an answer holds an empty list (a `NULL` column reads the
    same way), so it is solved by submitting `[]`. A missing or `null`
    submission never matches.
    """
    if submitted is None:
        return False
    return list(submitted) == list(stored or [])


def _check_page(page: int):
    if page < 0:
        raise ValueError("page must be >= 0")


class UserService:
    """Registration, credential lookup and quiz ownership."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.role_repo = repositories.RoleRepository(session)

    def register(self, user_in: schemas.UserIn) -> bool:
        """Create a new user with a hashed password and the `USER` role.

        Returns False without touching the database when the email is
        already registered. The new row never carries a client-supplied
        id, so the insert cannot overwrite an existing account.
        """
        if self.user_repo.get_by_username(user_in.email) is not None:
            logger.info("register_rejected duplicate email")
            return False
        user = models.User(
            id=None,
            email=user_in.email,
            password_hash=PWD_CTX.hash(user_in.password),
            roles=[self.role_repo.get_or_create(models.RoleName.USER)],
        )
        self.user_repo.create(user)
        logger.info("user_registered id=%s", user.id)
        return True

    def load_by_username(self, username: str) -> models.User:
        user = self.user_repo.get_by_username(username)
        if user is None:
            raise UserNotFound(username)
        return user

    def verify_password(self, user: models.User, password: str) -> bool:
        return PWD_CTX.verify(password, user.password_hash)

    def owns_quiz(self, quiz: models.Quiz, username: str) -> bool:
        """Return True if `username` created `quiz`."""
        return quiz.owner is not None and quiz.owner.username == username

    def attach_quiz(self, quiz: models.Quiz, username: str):
        """Add `quiz` to the user's own quizzes and flush (no commit)."""
        user = self.load_by_username(username)
        user.quizzes.append(quiz)
        self.user_repo.flush()

    def detach_quiz(self, quiz: models.Quiz, username: str):
        """Remove `quiz` from its owner's quizzes, which deletes the row.

        Does nothing unless `username` owns the quiz. Flushes, never commits.
        """
        if not self.owns_quiz(quiz, username):
            return
        self.load_by_username(username).quizzes.remove(quiz)
        self.user_repo.flush()

    def ensure_admin(self, email: str, password: str) -> models.User:
        """Make sure an administrator account exists for `email`.

        A missing account is created with both roles; this raises
        ValueError when `password` is shorter than 5 characters. An
        existing account keeps its password and is granted `ADMIN` if it
        lacks it.
        """
        user = self.user_repo.get_by_username(email)
        if user is None and len(password or '') < MIN_PASSWORD_LENGTH:
            raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
        admin_role = self.role_repo.get_or_create(models.RoleName.ADMIN)
        if user is None:
            user = models.User(
                email=email,
                password_hash=PWD_CTX.hash(password),
                roles=[self.role_repo.get_or_create(models.RoleName.USER), admin_role],
            )
            logger.info("admin_created")
            return self.user_repo.create(user)
        if not user.has_role(models.RoleName.ADMIN):
            user.roles.append(admin_role)
            logger.info("admin_granted id=%s", user.id)
        self.session.commit()
        self.session.refresh(user)
        return user


class CompletionService:
    """Append and query the per-user history of solved quizzes."""
    def __init__(self, session: Session):
        self.session = session
        self.completion_repo = repositories.CompletionRepository(session)

    def record(self, quiz: models.Quiz, requester: models.User) -> models.QuizCompletion:
        """Store that `requester` solved `quiz` just now."""
        completion = models.QuizCompletion(quiz_id=quiz.id, user_id=requester.id)
        return self.completion_repo.create(completion)

    def list_for_user(self, page: int, requester: models.User) -> schemas.Page[schemas.CompletionOut]:
        _check_page(page)
        rows, total = self.completion_repo.list_page_for_user(requester.id, page, PAGE_SIZE)
        content = [schemas.CompletionOut(quiz_id=r.quiz_id, completed_at=r.completed_at) for r in rows]
        return schemas.Page[schemas.CompletionOut].build(content, page, PAGE_SIZE, total)

    def delete_for_quiz(self, quiz: models.Quiz) -> int:
        """Remove every completion of `quiz` inside the caller's transaction."""
        return self.completion_repo.delete_for_quiz(quiz.id)


class QuizService:
    """Create, read, delete and solve quizzes."""
    def __init__(self, session: Session):
        self.session = session
        self.quiz_repo = repositories.QuizRepository(session)
        self.users = UserService(session)
        self.completions = CompletionService(session)

    def create(self, quiz_in: schemas.QuizIn, requester: models.User) -> models.Quiz:
        """Store a quiz owned by `requester` and return it with its new id."""
        quiz = models.Quiz(
            title=quiz_in.title,
            text=quiz_in.text,
            options=list(quiz_in.options),
            answer=list(quiz_in.answer or []),
        )
        self.users.attach_quiz(quiz, requester.username)
        quiz = self.quiz_repo.save(quiz)
        logger.info("quiz_created id=%s owner=%s", quiz.id, requester.id)
        return quiz

    def get(self, quiz_id: int) -> models.Quiz:
        quiz = self.quiz_repo.get(quiz_id)
        if quiz is None:
            raise QuizNotFound(quiz_id)
        return quiz

    def list_page(self, page: int) -> schemas.Page[schemas.QuizOut]:
        """Return page `page` (zero-based) of all quizzes, 10 per page.

        A page past the end is returned empty.
        """
        _check_page(page)
        rows, total = self.quiz_repo.list_page(page, PAGE_SIZE)
        content = [schemas.QuizOut.model_validate(q) for q in rows]
        return schemas.Page[schemas.QuizOut].build(content, page, PAGE_SIZE, total)

    def delete(self, quiz_id: int, requester: models.User) -> DeleteOutcome:
        """Delete a quiz and its completion records if `requester` owns it.

        Raises `QuizNotFound` for unknown ids. Non-owners get
        `DeleteOutcome.FORBIDDEN` and nothing changes. Both deletions are
        committed together; any error rolls the session back.
        """
        quiz = self.get(quiz_id)
        if not self.users.owns_quiz(quiz, requester.username):
            logger.info("quiz_delete_forbidden id=%s requester=%s", quiz_id, requester.id)
            return DeleteOutcome.FORBIDDEN
        try:
            removed = self.completions.delete_for_quiz(quiz)
            self.users.detach_quiz(quiz, requester.username)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info("quiz_deleted id=%s completions_removed=%s", quiz_id, removed)
        return DeleteOutcome.DELETED

    def answer(self, answer_in: schemas.AnswerIn, quiz_id: int, requester: models.User) -> schemas.QuizResult:
        """Check a submitted answer and record a completion when it is correct."""
        quiz = self.get(quiz_id)
        if not answers_match(quiz.answer, answer_in.answer):
            return RESULT_WRONG
        self.completions.record(quiz, requester)
        logger.info("quiz_solved id=%s user=%s", quiz_id, requester.id)
        return RESULT_CORRECT
