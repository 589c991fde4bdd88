"""
Trivia session engine
=====================
Owns the single active question, the fallback question store and the
per-player score ledger. The web layer talks only to SessionController.
"""

from __future__ import annotations

import threading
from typing import Optional

from errors import (
    GenerationParseError,
    InvalidAnswerError,
    NoActiveQuestionError,
    NoQuestionAvailableError,
    QuestionSourceError,
)
from generation import QuestionSource, parse_question_answer
from grading import grade
from logger import get_logger, log_game_event
from models import AnswerResult, QuestionOutcome, ScoreSummary, SessionState, StoreStatus
from question_store import QuestionStore

logger = get_logger("Trivia.session")

DEFAULT_PLAYER_ID = "default"


class SessionController:
    def __init__(
        self,
        source: QuestionSource,
        store: Optional[QuestionStore] = None,
        default_player_id: str = DEFAULT_PLAYER_ID,
    ):
        self.source = source
        self.store = store if store is not None else QuestionStore()
        self.state = SessionState()
        self.default_player_id = default_player_id
        self._lock = threading.Lock()

    def _player(self, player_id: Optional[str]) -> str:
        return player_id or self.default_player_id

    async def request_new_question(self) -> QuestionOutcome:
        """Arm a fresh question, generated live or picked from the store.

        Raises NoQuestionAvailableError when generation fails and the store
        is empty; the active question is left untouched in that case.
        """
        try:
            text = await self.source.generate()
            record = parse_question_answer(text)
        except QuestionSourceError as e:
            logger.warning(f"⚠️  Question generation failed: {e}")
        except GenerationParseError as e:
            logger.warning(f"⚠️  Failed to parse question/answer from generated text: {e.text[:200]!r}")
        else:
            with self._lock:
                self.store.add(record.question, record.answer)
                self.state.activate(record)
            log_game_event("question_generated", data={"question": record.question})
            logger.info(f"✅ New question armed ({len(record.question)} chars)")
            return QuestionOutcome(question=record.question, source="generated")

        with self._lock:
            fallback = self.store.pick_random()
            if fallback is not None:
                self.state.activate(fallback)
            store_size = len(self.store)

        if fallback is None:
            log_game_event("question_unavailable")
            logger.error("❌ No question available: generation failed and the store is empty")
            raise NoQuestionAvailableError("Unable to get trivia question")

        log_game_event("question_fallback", data={"question": fallback.question, "store_size": store_size})
        logger.info(f"↩️  Serving stored question ({store_size} in store)")
        return QuestionOutcome(question=fallback.question, source="fallback")

    def submit_answer(self, answer: Optional[str], player_id: Optional[str] = None) -> AnswerResult:
        """Grade an answer against the active question and update the ledger.

        Every call counts, so re-answering the same question scores again.
        """
        if answer is None or not isinstance(answer, str):
            raise InvalidAnswerError("An answer is required")

        player = self._player(player_id)
        with self._lock:
            active = self.state.active
            if active is not None:
                correct = grade(answer, active.answer)
                self.state.record_answer(player, correct)

        if active is None:
            log_game_event("answer_rejected", player_id=player, data={"reason": "no_active_question"})
            raise NoActiveQuestionError("No active question found")

        log_game_event("answer_submitted", player_id=player, data={"correct": correct})
        return AnswerResult(
            question=active.question,
            answer=active.answer,
            userAnswer=answer,
            correct=correct,
        )

    def get_score(self, player_id: Optional[str] = None) -> ScoreSummary:
        with self._lock:
            return self.state.score_for(self._player(player_id))

    def store_status(self) -> StoreStatus:
        with self._lock:
            return StoreStatus(size=len(self.store), maxSize=self.store.max_size)
