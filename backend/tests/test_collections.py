from quiz_api.errors import ErrorMessages
from quiz_api.models import QuizCollection


def _create(client, user, name="Test Collection", tags=("math", "science"), questions=()):
    body = {"name": name, "tags": list(tags), "questions": list(questions)}
    return client.post("/api/v1/collections", json=body, headers=user["headers"])


def _question(client, user, text, tags=()):
    body = {"question_text": text, "options": ["a", "b"], "answer": "a", "tags": list(tags)}
    r = client.post("/api/v1/questions", json=body, headers=user["headers"])
    assert r.status_code == 201
    return r.json()["data"]["_id"]


def test_collection_lifecycle(client, make_user):
    u = make_user()
    r = _create(client, u)
    assert r.status_code == 201
    assert r.json()["success"] is True
    data = r.json()["data"]
    assert data["name"] == "Test Collection"
    assert set(data["tags"]) == {"math", "science"}
    assert data["owner"] == u["id"]
    cid = data["_id"]

    dup = _create(client, u, tags=())
    assert dup.status_code == 400
    assert ErrorMessages.COLLECTION_ALREADY_EXISTS in dup.json()["message"]

    listed = client.get("/api/v1/collections")
    assert listed.status_code == 200
    assert isinstance(listed.json()["data"], list)

    one = client.get("/api/v1/collections", params={"id": cid})
    assert one.status_code == 200
    assert len(one.json()["data"]) == 1
    assert one.json()["data"][0]["_id"] == cid

    deleted = client.delete(f"/api/v1/collections/{cid}", headers=u["headers"])
    assert deleted.status_code == 200
    assert deleted.json()["success"] is True

    again = client.delete(f"/api/v1/collections/{cid}", headers=u["headers"])
    assert again.status_code == 404
    assert again.json()["success"] is False
    assert ErrorMessages.COLLECTION_NOT_FOUND in again.json()["message"]


def test_same_name_allowed_for_different_owners(client, make_user):
    assert _create(client, make_user()).status_code == 201
    assert _create(client, make_user()).status_code == 201


def test_create_validation(client, make_user):
    u = make_user()
    r = client.post("/api/v1/collections", json={"tags": []}, headers=u["headers"])
    assert r.status_code == 400
    assert r.json()["message"] == ErrorMessages.INVALID_STRING
    r = client.post("/api/v1/collections", json={"name": "x", "tags": "math"}, headers=u["headers"])
    assert r.json()["message"] == ErrorMessages.INVALID_TAGS_ARRAY
    r = client.post("/api/v1/collections", json={"name": "x", "questions": "1,2"}, headers=u["headers"])
    assert r.json()["message"] == ErrorMessages.INVALID_QUESTIONS_ARRAY


def test_questions_are_populated(client, make_user):
    u = make_user()
    q1 = _question(client, u, "First?")
    q2 = _question(client, u, "Second?")
    cid = _create(client, u, questions=[q1, q2]).json()["data"]["_id"]
    data = client.get("/api/v1/collections", params={"id": cid}).json()["data"][0]
    assert [q["_id"] for q in data["questions"]] == [q1, q2]
    assert data["questions"][0]["question"] == "First?"
    assert data["questions"][0]["options"] == ["a", "b"]


def test_deleted_question_leaves_dangling_reference(client, app, make_user):
    u = make_user()
    q1 = _question(client, u, "Keep?")
    q2 = _question(client, u, "Drop?")
    cid = _create(client, u, questions=[q1, q2]).json()["data"]["_id"]
    assert client.delete(f"/api/v1/questions/{q2}", headers=u["headers"]).status_code == 200

    data = client.get("/api/v1/collections", params={"id": cid}).json()["data"][0]
    assert [q["_id"] for q in data["questions"]] == [q1]
    with app.state.db.session() as session:
        assert session.get(QuizCollection, cid).questions == [q1, q2]


def test_edit_collection(client, make_user):
    u = make_user()
    q1 = _question(client, u, "Q1?")
    cid = _create(client, u, name="Alpha").json()["data"]["_id"]
    _create(client, u, name="Beta")

    clash = client.patch(f"/api/v1/collections/{cid}", json={"name": "Beta"}, headers=u["headers"])
    assert clash.status_code == 400
    assert clash.json()["message"] == ErrorMessages.COLLECTION_ALREADY_EXISTS

    # unchanged name is not a clash with itself
    same = client.patch(f"/api/v1/collections/{cid}", json={"name": "Alpha"}, headers=u["headers"])
    assert same.status_code == 200

    r = client.patch(f"/api/v1/collections/{cid}", json={"tags": ["history"], "questions": [q1]}, headers=u["headers"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Alpha"
    assert data["tags"] == ["history"]
    assert data["questions"] == [q1]

    bad = client.patch(f"/api/v1/collections/{cid}", json={"tags": "history"}, headers=u["headers"])
    assert bad.status_code == 400
    assert bad.json()["message"] == ErrorMessages.INVALID_TAGS_ARRAY

    missing = client.patch("/api/v1/collections/9999", json={"name": "x"}, headers=u["headers"])
    assert missing.status_code == 404


def test_only_owner_or_admin_may_mutate(client, make_user, grant_admin):
    owner = make_user()
    other = make_user()
    cid = _create(client, owner).json()["data"]["_id"]

    r = client.patch(f"/api/v1/collections/{cid}", json={"name": "Mine now"}, headers=other["headers"])
    assert r.status_code == 403
    assert r.json()["message"] == ErrorMessages.NEED_OWNERSHIP_OR_ADMIN
    assert client.delete(f"/api/v1/collections/{cid}", headers=other["headers"]).status_code == 403

    grant_admin(other["id"])
    r = client.patch(f"/api/v1/collections/{cid}", json={"name": "Renamed"}, headers=other["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["owner"] == owner["id"]
    assert client.delete(f"/api/v1/collections/{cid}", headers=other["headers"]).status_code == 200


def test_filters(client, make_user):
    alice = make_user("alice")
    bob = make_user("bob")
    q1 = _question(client, alice, "One?")
    q2 = _question(client, alice, "Two?")
    _create(client, alice, name="World Geography", tags=["geo"], questions=[q1, q2])
    _create(client, alice, name="Algebra", tags=["math"], questions=[q1])
    _create(client, bob, name="Geology", tags=["science"], questions=[])

    def names(**params):
        r = client.get("/api/v1/collections", params=params)
        assert r.status_code == 200
        return {c["name"] for c in r.json()["data"]}

    assert names(name="GEO") == {"World Geography", "Geology"}
    assert names(ownername="alice") == {"World Geography", "Algebra"}
    assert names(owner=bob["id"]) == {"Geology"}
    assert names(tags=["math", "science"]) == {"Algebra", "Geology"}
    assert names(questions=[q1]) == {"World Geography", "Algebra"}
    assert names(questions=[q1, q2]) == {"World Geography"}
    assert names(name="geo", tags="science") == {"Geology"}
    assert client.get("/api/v1/collections", params={"ownername": "nobody"}).status_code == 404

    assert len(client.get("/api/v1/collections", params={"limit": 2}).json()["data"]) == 2
    assert len(client.get("/api/v1/collections", params={"limit": "abc", "page": "0"}).json()["data"]) == 3
