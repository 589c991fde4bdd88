from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.templating import Jinja2Templates
from pathlib import Path
from typing import Optional
import logging

from config import settings
from errors import InvalidAnswerError, NoActiveQuestionError, NoQuestionAvailableError
from generation import OpenAIQuestionSource
from logger import setup_logging, get_logger, set_request_id, summarize_game_events
from models import AnswerRequest, AnswerResult, QuestionOutcome, ScoreSummary, StoreStatus
from question_store import QuestionStore
from session import SessionController

# Initialise structured, file-based logging
setup_logging(console_level=logging.INFO)
logger = get_logger("Trivia")

app = FastAPI(title="Trivia API")

# CORS - allow all origins for simplicity (adjust for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

# One game per process; tests swap it out through dependency_overrides
controller = SessionController(
    source=OpenAIQuestionSource(settings),
    store=QuestionStore(max_size=settings.store_size),
    default_player_id=settings.default_player_id,
)

if not settings.openai_api_key:
    logger.warning("⚠️  OPENAI_API_KEY not set - questions can only come from the fallback store")


def get_controller() -> SessionController:
    return controller


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = set_request_id(request.headers.get("X-Request-ID"))
    response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    return response


def render_chat(request: Request, status_code: int = 200, **overrides):
    """Render the chat page with every field defaulted to None"""
    context = {
        "response": None,
        "question": None,
        "answer": None,
        "userAnswer": None,
        "correct": None,
        "error": None,
    }
    context.update(overrides)
    return templates.TemplateResponse(request, "chat.html", context, status_code=status_code)


# --- Pages ---

@app.get("/")
async def start_screen(request: Request):
    return templates.TemplateResponse(request, "start_screen.html", {"response": None})


@app.get("/game")
async def game(request: Request):
    return render_chat(request)


@app.get("/question")
async def question_page(request: Request, trivia: SessionController = Depends(get_controller)):
    """Arm a new question and show it"""
    try:
        outcome = await trivia.request_new_question()
    except NoQuestionAvailableError as e:
        return render_chat(request, status_code=503, error=str(e))
    except Exception as e:
        logger.error(f"❌ Question request failed: {type(e).__name__}: {e}")
        return render_chat(request, status_code=500, error="Unable to get trivia question")
    return render_chat(request, question=outcome.question)


@app.post("/answer")
async def answer_page(request: Request, trivia: SessionController = Depends(get_controller)):
    """Grade a submitted answer from the chat form.

    The form is read directly so an empty answer field is graded rather
    than treated as absent.
    """
    form = await request.form()
    answer = form.get("answer")
    user_id = form.get("userId")
    try:
        result = trivia.submit_answer(answer, user_id if isinstance(user_id, str) else None)
    except NoActiveQuestionError as e:
        return render_chat(request, question="Please get a new question first!", error=str(e))
    except InvalidAnswerError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return render_chat(
        request,
        question=result.question,
        answer=result.answer,
        userAnswer=result.userAnswer,
        correct=result.correct,
    )


@app.get("/score", response_model=ScoreSummary)
async def score(userId: Optional[str] = None, trivia: SessionController = Depends(get_controller)):
    return trivia.get_score(userId)


# --- JSON API ---

@app.post("/api/question", response_model=QuestionOutcome)
async def api_question(trivia: SessionController = Depends(get_controller)):
    try:
        return await trivia.request_new_question()
    except NoQuestionAvailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error(f"❌ Question request failed: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail="Unable to get trivia question")


@app.post("/api/answer", response_model=AnswerResult)
async def api_answer(request: AnswerRequest, trivia: SessionController = Depends(get_controller)):
    try:
        return trivia.submit_answer(request.answer, request.userId)
    except NoActiveQuestionError as e:
        raise HTTPException(status_code=409, detail=f"{e}. Please get a new question first!")
    except InvalidAnswerError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.get("/api/score", response_model=ScoreSummary)
async def api_score(userId: Optional[str] = None, trivia: SessionController = Depends(get_controller)):
    return trivia.get_score(userId)


@app.get("/api/store", response_model=StoreStatus)
async def api_store(trivia: SessionController = Depends(get_controller)):
    """Fallback question bank occupancy"""
    return trivia.store_status()


@app.get("/api/stats")
async def get_stats(hours: float = 24):
    """Question sourcing and answer counts from the game event log."""
    return summarize_game_events(since_hours=hours)


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    print(f"\n🎲 Trivia Server")
    print(f"   Live generation: {'✅ Enabled' if settings.openai_api_key else '❌ OPENAI_API_KEY not set'}")
    print(f"   URL: http://localhost:{settings.port}\n")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
