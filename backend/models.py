from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from dataclasses import dataclass, field


class QuestionRecord(BaseModel):
    """A stored question/answer pair. Frozen once created."""
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str


class QuestionOutcome(BaseModel):
    question: str
    source: str  # 'generated' | 'fallback'


class AnswerResult(BaseModel):
    question: str
    answer: str
    userAnswer: str
    correct: bool


class ScoreSummary(BaseModel):
    score: int = 0
    questionsAnswered: int = 0


class AnswerRequest(BaseModel):
    answer: str
    userId: Optional[str] = None


class StoreStatus(BaseModel):
    size: int
    maxSize: int = Field(ge=1)


@dataclass
class SessionState:
    active: Optional[QuestionRecord] = None
    scores: dict[str, int] = field(default_factory=dict)  # player id -> correct answers
    progress: dict[str, int] = field(default_factory=dict)  # player id -> questions answered

    @property
    def current_question(self) -> Optional[str]:
        return self.active.question if self.active else None

    @property
    def current_answer(self) -> Optional[str]:
        return self.active.answer if self.active else None

    def activate(self, record: QuestionRecord) -> None:
        """Arm a new active question, replacing question and answer together"""
        self.active = record

    def record_answer(self, player_id: str, correct: bool) -> None:
        if correct:
            self.scores[player_id] = self.scores.get(player_id, 0) + 1
        self.progress[player_id] = self.progress.get(player_id, 0) + 1

    def score_for(self, player_id: str) -> ScoreSummary:
        return ScoreSummary(
            score=self.scores.get(player_id, 0),
            questionsAnswered=self.progress.get(player_id, 0),
        )
