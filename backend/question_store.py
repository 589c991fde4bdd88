"""
Bounded, deduplicated question bank used when live generation fails.
Records are kept in insertion order; the oldest is evicted first.
"""

from __future__ import annotations

import random
from collections import OrderedDict
from typing import Optional

from models import QuestionRecord

DEFAULT_MAX_SIZE = 100


class QuestionStore:
    def __init__(self, max_size: int = DEFAULT_MAX_SIZE, rng: Optional[random.Random] = None):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._rng = rng or random.Random()
        # question text -> record
        self._records: OrderedDict[str, QuestionRecord] = OrderedDict()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, question: object) -> bool:
        return question in self._records

    def add(self, question: str, answer: str) -> bool:
        """Store a pair unless its question text is already present.

        Returns True when a new record was appended.
        """
        if question in self._records:
            return False
        self._records[question] = QuestionRecord(question=question, answer=answer)
        if len(self._records) > self.max_size:
            self._records.popitem(last=False)
        return True

    def pick_random(self) -> Optional[QuestionRecord]:
        """Uniformly random record, or None when the store is empty"""
        if not self._records:
            return None
        return self._rng.choice(list(self._records.values()))

    def records(self) -> list[QuestionRecord]:
        return list(self._records.values())
