import pytest

from quiz_api.errors import ErrorMessages


def _create(client, user, text="What is 1+1?", options=("1", "2"), answer="2", tags=("math",)):
    body = {"question_text": text, "options": list(options), "answer": answer, "tags": list(tags)}
    return client.post("/api/v1/questions", json=body, headers=user["headers"])


def _patch(client, user, qid, field, value):
    return client.patch(f"/api/v1/questions/{qid}", json={"field": field, "value": value}, headers=user["headers"])


def test_create_question(client, make_user):
    u = make_user()
    r = _create(client, u)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["question"] == "What is 1+1?"
    assert data["options"] == ["1", "2"]
    assert data["answer"] == "2"
    assert data["owner"] == u["id"]
    assert data["tags"] == ["math"]


def test_same_text_same_owner_is_rejected(client, make_user):
    u = make_user()
    other = make_user()
    assert _create(client, u).status_code == 201
    dup = _create(client, u)
    assert dup.status_code == 400
    assert dup.json()["message"] == ErrorMessages.QUESTION_ALREADY_EXISTS
    # another owner may reuse the text
    assert _create(client, other).status_code == 201


@pytest.mark.parametrize("body,message", [
    ({"question_text": " ", "options": ["a", "b"], "answer": "a"}, ErrorMessages.INVALID_STRING),
    ({"question_text": "Q", "options": ["a", "b"]}, ErrorMessages.NEED_ANSWER),
    ({"question_text": "Q", "options": ["a"], "answer": "a"}, ErrorMessages.INVALID_OPTIONS_ARRAY),
    ({"question_text": "Q", "options": "a,b", "answer": "a"}, ErrorMessages.INVALID_OPTIONS_ARRAY),
    ({"question_text": "Q", "options": ["a", "b"], "answer": "a", "tags": "x"}, ErrorMessages.INVALID_TAGS_ARRAY),
    ({"question_text": "Q", "options": ["a", "b"], "answer": "c"}, ErrorMessages.OPTIONS_MUST_INCLUDE_ANSWER),
])
def test_create_validation(client, make_user, body, message):
    u = make_user()
    r = client.post("/api/v1/questions", json=body, headers=u["headers"])
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": message}


@pytest.mark.parametrize("options,answer,ok", [
    (["a", "b"], "a", True),
    (["a", "b"], "b", True),
    (["a", "b", "c"], "c", True),
    (["a", "b"], "A", False),
    (["a", "b"], "a ", False),
    (["a", "b"], "z", False),
])
def test_answer_must_be_an_option_on_create_and_edit(client, make_user, options, answer, ok):
    u = make_user()
    created = _create(client, u, options=options, answer=answer)
    assert (created.status_code == 201) is ok
    base = _create(client, u, text="Base question", options=options, answer=options[0])
    qid = base.json()["data"]["_id"]
    edited = _patch(client, u, qid, "answer", answer)
    assert (edited.status_code == 200) is ok
    if not ok:
        assert edited.json()["message"] == ErrorMessages.OPTIONS_MUST_INCLUDE_ANSWER


def test_edit_options_then_answer(client, make_user):
    u = make_user()
    qid = _create(client, u, options=["a", "b"], answer="a").json()["data"]["_id"]
    bad = _patch(client, u, qid, "answer", "z")
    assert bad.status_code == 400
    assert bad.json()["message"] == ErrorMessages.OPTIONS_MUST_INCLUDE_ANSWER

    r = _patch(client, u, qid, "options", ["x", "y"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["options"] == ["x", "y"]
    assert data["answer"] in data["options"]

    r = _patch(client, u, qid, "answer", "y")
    assert r.status_code == 200
    assert r.json()["data"]["answer"] == "y"
    r = _patch(client, u, qid, "answer", "x")
    assert r.status_code == 200
    assert r.json()["data"]["answer"] == "x"


def test_edit_options_keeping_answer_leaves_it_alone(client, make_user):
    u = make_user()
    qid = _create(client, u, options=["a", "b"], answer="b").json()["data"]["_id"]
    r = _patch(client, u, qid, "options", ["c", "b", "d"])
    assert r.json()["data"]["answer"] == "b"


@pytest.mark.parametrize("field,value,message", [
    ("tags", ["new"], ErrorMessages.FIELD_NOT_EDITABLE),
    ("owner", 99, ErrorMessages.FIELD_NOT_EDITABLE),
    ("options", "not-a-list", ErrorMessages.INVALID_OPTIONS_ARRAY),
    ("options", ["only-one"], ErrorMessages.INVALID_OPTIONS_ARRAY),
    ("question", "", ErrorMessages.INVALID_STRING),
])
def test_edit_validation(client, make_user, field, value, message):
    u = make_user()
    qid = _create(client, u).json()["data"]["_id"]
    r = _patch(client, u, qid, field, value)
    assert r.status_code == 400
    assert r.json()["message"] == message


def test_edit_question_text(client, make_user):
    u = make_user()
    qid = _create(client, u).json()["data"]["_id"]
    r = _patch(client, u, qid, "question", "  What is 2+2?  ")
    assert r.status_code == 200
    assert r.json()["data"]["question"] == "What is 2+2?"


def test_only_owner_or_admin_may_mutate(client, make_user, grant_admin):
    owner = make_user()
    other = make_user()
    qid = _create(client, owner).json()["data"]["_id"]

    r = _patch(client, other, qid, "answer", "1")
    assert r.status_code == 403
    assert r.json()["message"] == ErrorMessages.NEED_OWNERSHIP_OR_ADMIN
    r = client.delete(f"/api/v1/questions/{qid}", headers=other["headers"])
    assert r.status_code == 403

    grant_admin(other["id"])
    assert _patch(client, other, qid, "answer", "1").status_code == 200
    r = client.delete(f"/api/v1/questions/{qid}", headers=other["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["_id"] == qid


def test_delete_twice_is_404(client, make_user):
    u = make_user()
    qid = _create(client, u).json()["data"]["_id"]
    assert client.delete(f"/api/v1/questions/{qid}", headers=u["headers"]).status_code == 200
    r = client.delete(f"/api/v1/questions/{qid}", headers=u["headers"])
    assert r.status_code == 404
    assert r.json()["message"] == ErrorMessages.QUESTION_NOT_FOUND
    assert _patch(client, u, qid, "answer", "1").status_code == 404


def test_create_requires_token(client):
    r = client.post("/api/v1/questions", json={"question_text": "Q", "options": ["a", "b"], "answer": "a"})
    assert r.status_code == 401


def test_list_and_filter_questions(client, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    _create(client, alice, text="Capital of France?", options=["Paris", "Rome"], answer="Paris", tags=["geo"])
    _create(client, alice, text="2+2?", options=["3", "4"], answer="4", tags=["math"])
    bob_q = _create(client, bob, text="Capital of Italy?", options=["Paris", "Rome"], answer="Rome", tags=["geo", "eu"])
    bob_qid = bob_q.json()["data"]["_id"]

    everything = client.get("/api/v1/questions").json()["data"]
    assert len(everything) == 3
    # newest first
    assert everything[0]["_id"] == bob_qid

    by_owner = client.get("/api/v1/questions", params={"ownername": "alice"}).json()["data"]
    assert {q["question"] for q in by_owner} == {"Capital of France?", "2+2?"}

    by_text = client.get("/api/v1/questions", params={"question": "CAPITAL"}).json()["data"]
    assert len(by_text) == 2

    by_tag = client.get("/api/v1/questions", params=[("tags", "eu"), ("tags", "math")]).json()["data"]
    assert {q["question"] for q in by_tag} == {"Capital of Italy?", "2+2?"}

    by_id = client.get("/api/v1/questions", params={"id": bob_qid})
    assert by_id.status_code == 200
    assert [q["_id"] for q in by_id.json()["data"]] == [bob_qid]

    assert client.get("/api/v1/questions", params={"id": 9999}).status_code == 404
    assert client.get("/api/v1/questions", params={"ownername": "nobody"}).status_code == 404

    page = client.get("/api/v1/questions", params={"limit": 1, "page": 3}).json()["data"]
    assert len(page) == 1
    fallback = client.get("/api/v1/questions", params={"limit": "0", "page": "x"}).json()["data"]
    assert len(fallback) == 3
