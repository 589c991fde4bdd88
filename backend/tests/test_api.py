import pytest

from errors import QuestionSourceError

PARIS = "Question: What is the capital of France?\nAnswer: Paris"


@pytest.mark.asyncio
async def test_health(api_client):
    response = await api_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_request_id_is_echoed(api_client):
    response = await api_client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"


@pytest.mark.asyncio
async def test_start_and_game_pages_render(api_client):
    start = await api_client.get("/")
    game = await api_client.get("/game")
    assert start.status_code == 200
    assert 'href="/game"' in start.text
    assert game.status_code == 200
    assert 'action="/answer"' in game.text


@pytest.mark.asyncio
async def test_question_answer_score_flow(api_client, trivia):
    trivia.source.replies = [PARIS]

    page = await api_client.get("/question")
    assert page.status_code == 200
    assert "What is the capital of France?" in page.text

    answered = await api_client.post("/answer", data={"answer": " PARIS ", "userId": "alice"})
    assert answered.status_code == 200
    assert "Correct!" in answered.text

    wrong = await api_client.post("/answer", data={"answer": "Lyon", "userId": "alice"})
    assert "The answer was: Paris" in wrong.text

    score = await api_client.get("/score", params={"userId": "alice"})
    assert score.json() == {"score": 1, "questionsAnswered": 2}


@pytest.mark.asyncio
async def test_answer_page_without_question_prompts_for_one(api_client):
    response = await api_client.post("/answer", data={"answer": "Paris"})
    assert response.status_code == 200
    assert "Please get a new question first!" in response.text
    assert "No active question found" in response.text


@pytest.mark.asyncio
async def test_answer_page_requires_answer_field(api_client):
    response = await api_client.post("/answer", data={"userId": "alice"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_question_page_when_nothing_available(api_client, trivia):
    trivia.source.replies = [QuestionSourceError("down")]
    response = await api_client.get("/question")
    assert response.status_code == 503
    assert "Unable to get trivia question" in response.text


@pytest.mark.asyncio
async def test_score_defaults_for_unknown_player(api_client):
    response = await api_client.get("/score", params={"userId": "newUser"})
    assert response.json() == {"score": 0, "questionsAnswered": 0}


@pytest.mark.asyncio
async def test_anonymous_players_share_default_bucket(api_client, trivia):
    trivia.source.replies = [PARIS]
    await api_client.post("/api/question")

    await api_client.post("/api/answer", json={"answer": "Paris"})
    await api_client.post("/answer", data={"answer": "Paris"})

    response = await api_client.get("/score")
    assert response.json() == {"score": 2, "questionsAnswered": 2}


@pytest.mark.asyncio
async def test_json_api_flow(api_client, trivia):
    trivia.source.replies = [PARIS]

    question = await api_client.post("/api/question")
    assert question.status_code == 200
    assert question.json() == {"question": "What is the capital of France?", "source": "generated"}

    answer = await api_client.post("/api/answer", json={"answer": "paris", "userId": "bob"})
    assert answer.status_code == 200
    assert answer.json() == {
        "question": "What is the capital of France?",
        "answer": "Paris",
        "userAnswer": "paris",
        "correct": True,
    }

    score = await api_client.get("/api/score", params={"userId": "bob"})
    assert score.json() == {"score": 1, "questionsAnswered": 1}

    store = await api_client.get("/api/store")
    assert store.json() == {"size": 1, "maxSize": 100}


@pytest.mark.asyncio
async def test_json_api_fallback(api_client, trivia):
    trivia.source.replies = [PARIS, QuestionSourceError("down")]
    await api_client.post("/api/question")

    response = await api_client.post("/api/question")
    assert response.json() == {"question": "What is the capital of France?", "source": "fallback"}


@pytest.mark.asyncio
async def test_json_api_errors(api_client, trivia):
    trivia.source.replies = [QuestionSourceError("down")]

    unavailable = await api_client.post("/api/question")
    assert unavailable.status_code == 503

    no_question = await api_client.post("/api/answer", json={"answer": "Paris"})
    assert no_question.status_code == 409

    missing = await api_client.post("/api/answer", json={"userId": "bob"})
    assert missing.status_code == 422


@pytest.mark.asyncio
async def test_stats_endpoint_counts_game_events(api_client, trivia):
    before = (await api_client.get("/api/stats")).json()

    trivia.source.replies = [PARIS, QuestionSourceError("down")]
    await api_client.post("/api/question")
    await api_client.post("/api/question")
    await api_client.post("/api/answer", json={"answer": "Paris", "userId": "stats"})

    after = (await api_client.get("/api/stats", params={"hours": 1})).json()
    assert after["questions_generated"] == before["questions_generated"] + 1
    assert after["questions_from_store"] == before["questions_from_store"] + 1
    assert after["answers_submitted"] == before["answers_submitted"] + 1
    assert after["answers_correct"] == before["answers_correct"] + 1


@pytest.mark.asyncio
async def test_empty_answer_is_graded_on_both_routes(api_client, trivia):
    trivia.source.replies = [PARIS]
    await api_client.post("/api/question")

    page = await api_client.post("/answer", data={"answer": "", "userId": "eve"})
    assert page.status_code == 200
    assert "The answer was: Paris" in page.text

    api = await api_client.post("/api/answer", json={"answer": "", "userId": "eve"})
    assert api.status_code == 200
    assert api.json()["correct"] is False

    score = await api_client.get("/score", params={"userId": "eve"})
    assert score.json() == {"score": 0, "questionsAnswered": 2}
