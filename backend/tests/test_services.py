import pytest
from sqlmodel import Session
from webquiz.database import engine
from webquiz.config import Settings
from webquiz import models, repositories, schemas, services


def _owner(session, email='svc@example.com'):
    users = services.UserService(session)
    assert users.register(schemas.UserIn(email=email, password='secret1')) is True
    return users.load_by_username(email)


def test_answers_match():
    assert services.answers_match([0, 2], [0, 2])
    assert not services.answers_match([0, 2], [2, 0])
    assert not services.answers_match([0], [0, 0])
    assert services.answers_match([], [])
    assert services.answers_match(None, [])
    assert not services.answers_match(None, None)
    assert not services.answers_match([], None)
    assert not services.answers_match([1], None)


def test_result_constants_are_immutable():
    with pytest.raises(Exception):
        services.RESULT_CORRECT.success = False
    assert services.RESULT_WRONG.success is False


def test_page_build():
    page = schemas.Page[int].build([1, 2, 3], 0, 10, 3)
    assert page.total_pages == 1
    assert page.first and page.last and not page.empty
    beyond = schemas.Page[int].build([], 3, 10, 25)
    assert beyond.total_pages == 3
    assert beyond.empty and beyond.last
    dumped = page.model_dump(by_alias=True)
    assert dumped['totalElements'] == 3
    assert dumped['numberOfElements'] == 3


def test_register_twice_returns_false():
    with Session(engine) as session:
        _owner(session)
        again = services.UserService(session).register(schemas.UserIn(email='svc@example.com', password='secret2'))
        assert again is False


def test_load_unknown_user_raises():
    with Session(engine) as session:
        with pytest.raises(services.UserNotFound):
            services.UserService(session).load_by_username('ghost@example.com')


def test_owns_quiz_uses_owner_reference():
    with Session(engine) as session:
        owner = _owner(session)
        quiz = services.QuizService(session).create(
            schemas.QuizIn(title='T', text='Q', options=['a', 'b'], answer=[0]), owner
        )
        users = services.UserService(session)
        assert quiz.owner_id == owner.id
        assert users.owns_quiz(quiz, 'svc@example.com')
        assert not users.owns_quiz(quiz, 'someone@example.com')


def test_list_page_rejects_negative_page():
    with Session(engine) as session:
        with pytest.raises(ValueError):
            services.QuizService(session).list_page(-1)


def test_delete_rolls_back_when_detach_fails(monkeypatch):
    with Session(engine) as session:
        owner = _owner(session)
        quizzes = services.QuizService(session)
        quiz = quizzes.create(schemas.QuizIn(title='T', text='Q', options=['a', 'b'], answer=[1]), owner)
        quiz_id = quiz.id
        assert quizzes.answer(schemas.AnswerIn(answer=[1]), quiz_id, owner) == services.RESULT_CORRECT

        def boom(self, quiz, username):
            raise RuntimeError('detach failed')

        monkeypatch.setattr(services.UserService, 'detach_quiz', boom)
        with pytest.raises(RuntimeError):
            services.QuizService(session).delete(quiz_id, owner)

    with Session(engine) as session:
        assert session.get(models.Quiz, quiz_id) is not None
        assert len(repositories.CompletionRepository(session).list_for_quiz(quiz_id)) == 1


def test_create_without_answer_stores_empty_list():
    with Session(engine) as session:
        owner = _owner(session)
        quiz = services.QuizService(session).create(
            schemas.QuizIn(title='T', text='Q', options=['a', 'b']), owner
        )
        quiz_id = quiz.id
    with Session(engine) as session:
        assert session.get(models.Quiz, quiz_id).answer == []


def test_ensure_admin_rejects_short_password_for_new_account():
    with Session(engine) as session:
        users = services.UserService(session)
        with pytest.raises(ValueError):
            users.ensure_admin('new@example.com', '')
        with pytest.raises(ValueError):
            users.ensure_admin('new@example.com', 'abcd')
        assert repositories.UserRepository(session).get_by_username('new@example.com') is None


def test_ensure_admin_promotes_existing_user_without_password():
    with Session(engine) as session:
        _owner(session)
        admin = services.UserService(session).ensure_admin('svc@example.com', '')
        assert admin.has_role(models.RoleName.ADMIN)
        assert services.UserService(session).verify_password(admin, 'secret1')


def test_settings_require_admin_password_outside_dev(monkeypatch):
    monkeypatch.setenv('ENV', 'prod')
    monkeypatch.setenv('ADMIN_EMAIL', 'root@example.com')
    monkeypatch.setenv('ADMIN_PASSWORD', 'abc')
    with pytest.raises(RuntimeError):
        Settings()
    monkeypatch.setenv('ADMIN_PASSWORD', 'long-enough')
    assert Settings().ENV == 'prod'
    monkeypatch.setenv('ENV', 'dev')
    monkeypatch.setenv('ADMIN_PASSWORD', '')
    assert Settings().ADMIN_EMAIL == 'root@example.com'
