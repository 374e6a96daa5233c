# =============================================================================
# tests/test_community_api.py - Q&A, Projects and Messages Tests
# =============================================================================

from intellecta.community.votes import apply_vote
from tests.conftest import run

QUESTION = {
    "title": "How do list comprehensions work?",
    "content": "I keep getting confused by the order of the for clauses.",
    "tags": ["Python", " lists "],
}

PROJECT = {
    "title": "Todo CLI",
    "description": "A tiny command line todo manager.",
    "repo_url": "https://github.com/kodr/todo-cli",
    "tags": ["cli"],
}


class TestApplyVote:

    def test_new_vote(self):
        voters, delta = apply_vote({}, "U1", "up")
        assert voters == {"U1": 1}
        assert delta == 1

    def test_repeat_is_noop(self):
        _, delta = apply_vote({"U1": 1}, "U1", "up")
        assert delta == 0

    def test_switch_flips(self):
        voters, delta = apply_vote({"U1": 1}, "U1", "down")
        assert voters == {"U1": -1}
        assert delta == -2


class TestQuestions:

    def test_ask_and_answer(self, client, make_user):
        _, asker = make_user(name="Asker")
        _, helper = make_user(name="Helper")

        question = client.post("/qa/questions", json=QUESTION, headers=asker).json()["data"]["question"]
        assert question["tags"] == ["python", "lists"]
        assert "voters" not in question

        response = client.post(
            f"/qa/questions/{question['question_id']}/answers",
            json={"content": "Read them left to right like nested loops."},
            headers=helper,
        )
        assert response.status_code == 201

        detail = client.get(f"/qa/questions/{question['question_id']}").json()["data"]
        assert detail["question"]["answer_count"] == 1
        assert detail["answers"][0]["author_name"] == "Helper"

    def test_votes_are_one_per_user(self, client, make_user):
        _, asker = make_user()
        _, voter = make_user()
        question_id = client.post("/qa/questions", json=QUESTION, headers=asker).json()["data"]["question"]["question_id"]

        url = f"/qa/questions/{question_id}/vote"
        assert client.post(url, json={"direction": "up"}, headers=voter).json()["data"]["votes"] == 1
        assert client.post(url, json={"direction": "up"}, headers=voter).json()["data"]["votes"] == 1
        assert client.post(url, json={"direction": "down"}, headers=voter).json()["data"]["votes"] == -1

    def test_vote_tally_matches_voters(self, client, db, make_user):
        _, asker = make_user()
        question_id = client.post("/qa/questions", json=QUESTION, headers=asker).json()["data"]["question"]["question_id"]
        url = f"/qa/questions/{question_id}/vote"

        run(db.questions.update_one(
            {"question_id": question_id}, {"$set": {"voters.USER_ELSEWHERE": 1}, "$inc": {"votes": 1}}
        ))
        for direction in ("up", "down", "up"):
            _, voter = make_user()
            client.post(url, json={"direction": direction}, headers=voter)

        stored = run(db.questions.find_one({"question_id": question_id}))
        assert stored["voters"]["USER_ELSEWHERE"] == 1
        assert len(stored["voters"]) == 4
        assert stored["votes"] == sum(stored["voters"].values()) == 2

    def test_filter_by_tag(self, client, make_user):
        _, headers = make_user()
        client.post("/qa/questions", json=QUESTION, headers=headers)
        client.post("/qa/questions", json={**QUESTION, "tags": ["javascript"]}, headers=headers)
        data = client.get("/qa/questions", params={"tag": "PYTHON"}).json()["data"]
        assert data["pagination"]["total"] == 1

    def test_answer_missing_question(self, client, make_user):
        _, headers = make_user()
        response = client.post("/qa/questions/QUESTION_NOPE/answers", json={"content": "hi"}, headers=headers)
        assert response.status_code == 404


class TestProjects:

    def test_only_author_can_edit(self, client, make_user):
        _, author = make_user()
        _, stranger = make_user()
        project_id = client.post("/projects/", json=PROJECT, headers=author).json()["data"]["project"]["project_id"]

        assert client.put(f"/projects/{project_id}", json={"title": "Hijacked"}, headers=stranger).status_code == 403
        assert client.delete(f"/projects/{project_id}", headers=stranger).status_code == 403

        updated = client.put(f"/projects/{project_id}", json={"title": "Todo CLI v2"}, headers=author)
        assert updated.json()["data"]["project"]["title"] == "Todo CLI v2"
        assert client.delete(f"/projects/{project_id}", headers=author).status_code == 200
        assert client.get(f"/projects/{project_id}").status_code == 404

    def test_repo_url_must_be_http(self, client, make_user):
        _, headers = make_user()
        response = client.post("/projects/", json={**PROJECT, "repo_url": "ftp://nope"}, headers=headers)
        assert response.status_code == 400


class TestMessages:

    def test_conversation_round_trip(self, client, make_user):
        alice, alice_headers = make_user(name="Alice")
        bob, bob_headers = make_user(name="Bob")

        sent = client.post(f"/messages/send/{bob['user_id']}", json={"message": "hey"}, headers=alice_headers)
        assert sent.status_code == 201
        client.post(f"/messages/send/{alice['user_id']}", json={"message": "hi!"}, headers=bob_headers)

        thread = client.get(f"/messages/{alice['user_id']}", headers=bob_headers).json()["data"]["messages"]
        assert [m["message"] for m in thread] == ["hey", "hi!"]

        conversations = client.get("/messages/conversations", headers=alice_headers).json()["data"]["conversations"]
        assert len(conversations) == 1
        assert conversations[0]["participant"]["name"] == "Bob"
        assert conversations[0]["last_message"] == "hi!"

    def test_cannot_message_self(self, client, make_user):
        me, headers = make_user()
        response = client.post(f"/messages/send/{me['user_id']}", json={"message": "echo"}, headers=headers)
        assert response.status_code == 400

    def test_unknown_recipient(self, client, make_user):
        _, headers = make_user()
        response = client.post("/messages/send/USER_NOPE", json={"message": "hello"}, headers=headers)
        assert response.status_code == 404
