"""
Question generation: the live text-completion source and the parser that
turns its free-text reply into a question/answer pair.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from config import Settings, settings as default_settings
from errors import GenerationParseError, QuestionSourceError
from logger import GenerationCallTracker, get_generation_logger
from models import QuestionRecord

generation_log = get_generation_logger()

TRIVIA_SYSTEM_PROMPT = (
    "You are a trivia generator. Reply with exactly one question and its answer in this format:\n"
    "Question: <question text>\n"
    "Answer: <answer text>"
)
TRIVIA_USER_PROMPT = "Generate one trivia question and its answer."


class QuestionSource(ABC):
    """Anything that can produce a fresh block of generated trivia text."""

    @abstractmethod
    async def generate(self) -> str:
        """Return raw generated text; raise QuestionSourceError on failure."""


class OpenAIQuestionSource(QuestionSource):
    def __init__(self, config: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.config = config or default_settings
        self._client = client

    def _payload(self) -> dict:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": TRIVIA_SYSTEM_PROMPT},
                {"role": "user", "content": TRIVIA_USER_PROMPT},
            ],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }

    async def _post(self, payload: dict, headers: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.config.openai_url, json=payload, headers=headers)
        async with httpx.AsyncClient(timeout=self.config.generation_timeout) as client:
            return await client.post(self.config.openai_url, json=payload, headers=headers)

    async def generate(self) -> str:
        payload = self._payload()
        tracker = GenerationCallTracker(
            model=self.config.model,
            prompt_chars=len(TRIVIA_SYSTEM_PROMPT) + len(TRIVIA_USER_PROMPT),
        )

        with tracker:
            if not self.config.openai_api_key:
                tracker.finish(success=False, error="OPENAI_API_KEY not set")
                raise QuestionSourceError("OPENAI_API_KEY is not configured")

            headers = {
                "Authorization": f"Bearer {self.config.openai_api_key}",
                "Content-Type": "application/json",
            }
            try:
                response = await self._post(payload, headers)
            except httpx.TimeoutException as e:
                tracker.finish(success=False, error="Timeout")
                raise QuestionSourceError(f"Question generation timed out: {e}") from e
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                tracker.finish(success=False, error=f"{type(e).__name__}: {e}")
                raise QuestionSourceError(f"Question generation request failed: {e}") from e

            if response.status_code < 200 or response.status_code >= 300:
                err_msg = f"HTTP {response.status_code}: {response.text[:200]}"
                tracker.finish(success=False, error=err_msg, status_code=response.status_code)
                raise QuestionSourceError(f"Question generation service returned {err_msg}")

            try:
                data = response.json()
            except ValueError as e:
                tracker.finish(success=False, error="Non-JSON response", status_code=response.status_code)
                raise QuestionSourceError("Question generation service returned a non-JSON body") from e

            text = _extract_message_content(data)
            generation_log.debug("Response (%d chars):\n%s", len(text), text[:2000])
            if not text:
                generation_log.warning("EMPTY RESPONSE from question generation service")

            tracker.finish(
                success=True,
                status_code=response.status_code,
                response_chars=len(text),
                token_usage=data.get("usage") if isinstance(data, dict) else None,
            )
            return text


def _extract_message_content(data) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content.strip() if isinstance(content, str) else ""


# --- Parsing ---

_LABELLED_PAIR = re.compile(r"Question:\s*([\s\S]*?)\s*Answer:\s*([\s\S]*)", re.IGNORECASE)
_ANSWER_LABEL = re.compile(r"Answer:", re.IGNORECASE)
_QUESTION_LABEL = re.compile(r"Question:", re.IGNORECASE)


def _parse_labelled_pair(text: str) -> Optional[tuple[str, str]]:
    match = _LABELLED_PAIR.search(text)
    if not match:
        return None
    return match.group(1).strip(), match.group(2).strip()


def _parse_split_on_answer(text: str) -> Optional[tuple[str, str]]:
    parts = _ANSWER_LABEL.split(text)
    if len(parts) < 2:
        return None
    question = _QUESTION_LABEL.sub("", parts[0], count=1).strip()
    answer = "Answer:".join(parts[1:]).strip()
    return question, answer


def parse_question_answer(text: str) -> QuestionRecord:
    """Extract a question/answer pair from generated text.

    Tries a strict "Question: ... Answer: ..." match first and only falls
    back to a loose split on the "Answer:" label when that shape is absent.
    Raises GenerationParseError unless both a question and an answer result.
    """
    text = (text or "").strip()
    parsed = _parse_labelled_pair(text) or _parse_split_on_answer(text)
    if parsed:
        question, answer = parsed
        if question and answer:
            return QuestionRecord(question=question, answer=answer)
    raise GenerationParseError("Could not parse question/answer from generated text", text=text)
