from datetime import datetime
from fastapi.testclient import TestClient
from webquiz.main import app

client = TestClient(app)


def _user(email, password='secret1'):
    client.post('/api/register', json={'email': email, 'password': password})
    return (email, password)


def _create_quizzes(auth, count):
    ids = []
    for i in range(count):
        payload = {'title': f'Quiz {i}', 'text': f'Question {i}', 'options': ['yes', 'no'], 'answer': [0]}
        ids.append(client.post('/api/quizzes', json=payload, auth=auth).json()['id'])
    return ids


def test_quiz_pages_are_bounded_and_disjoint():
    auth = _user('pager@example.com')
    ids = _create_quizzes(auth, 12)

    first = client.get('/api/quizzes', params={'page': 0}, auth=auth).json()
    second = client.get('/api/quizzes', params={'page': 1}, auth=auth).json()
    assert len(first['content']) == 10
    assert len(second['content']) == 2
    first_ids = {q['id'] for q in first['content']}
    second_ids = {q['id'] for q in second['content']}
    assert first_ids.isdisjoint(second_ids)
    assert first_ids | second_ids == set(ids)
    assert first['totalElements'] == 12
    assert first['totalPages'] == 2
    assert first['first'] is True and first['last'] is False
    assert second['last'] is True
    assert all('answer' not in q for q in first['content'])


def test_page_past_the_end_is_empty():
    auth = _user('far@example.com')
    _create_quizzes(auth, 3)
    r = client.get('/api/quizzes', params={'page': 5}, auth=auth)
    assert r.status_code == 200
    body = r.json()
    assert body['content'] == []
    assert body['empty'] is True
    assert body['number'] == 5


def test_negative_page_is_rejected():
    auth = _user('neg@example.com')
    assert client.get('/api/quizzes', params={'page': -1}, auth=auth).status_code == 400
    assert client.get('/api/quizzes/completed', params={'page': -1}, auth=auth).status_code == 400


def test_page_defaults_to_zero():
    auth = _user('default@example.com')
    _create_quizzes(auth, 1)
    body = client.get('/api/quizzes', auth=auth).json()
    assert body['number'] == 0
    assert len(body['content']) == 1


def test_completions_are_private_and_most_recent_first():
    author = _user('hist-author@example.com')
    solver = _user('hist-solver@example.com')
    ids = _create_quizzes(author, 3)
    for quiz_id in ids:
        client.post(f'/api/quizzes/{quiz_id}/solve', json={'answer': [0]}, auth=solver)

    mine = client.get('/api/quizzes/completed', params={'page': 0}, auth=solver).json()
    assert [c['id'] for c in mine['content']] == list(reversed(ids))
    assert all('completedAt' in c for c in mine['content'])
    theirs = client.get('/api/quizzes/completed', params={'page': 0}, auth=author).json()
    assert theirs['content'] == []
    assert theirs['totalElements'] == 0


def test_completion_pages_hold_ten_records():
    author = _user('many-author@example.com')
    solver = _user('many-solver@example.com')
    quiz_id = _create_quizzes(author, 1)[0]
    for _ in range(11):
        client.post(f'/api/quizzes/{quiz_id}/solve', json={'answer': [0]}, auth=solver)

    first = client.get('/api/quizzes/completed', params={'page': 0}, auth=solver).json()
    second = client.get('/api/quizzes/completed', params={'page': 1}, auth=solver).json()
    assert len(first['content']) == 10
    assert len(second['content']) == 1
    assert first['totalElements'] == 11
    newest = datetime.fromisoformat(first['content'][0]['completedAt'])
    oldest = datetime.fromisoformat(second['content'][0]['completedAt'])
    assert newest >= oldest
