"""
Similar-Case Finder.

Picks between one and three reference cases to show alongside an analysis.
The selection is advisory only and never feeds into scoring or the
recommended outcome.

The number of cases returned is injectable: pass a fixed ``count`` for
reproducible output, or a seeded ``random.Random`` instance.
"""

from __future__ import annotations

import random
from typing import Optional

from practiceguard.config import DEFAULT_POLICY, TriagePolicy
from practiceguard.models import Notification

MAX_SIMILAR_CASES = 3


class SimilarCaseFinder:
    """Selects reference cases for display next to an analysis."""

    def __init__(
        self,
        references: Optional[list[str]] = None,
        count: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._references = list(references or DEFAULT_POLICY.similar_case_references)
        limit = min(MAX_SIMILAR_CASES, len(self._references))
        if count is not None and not 1 <= count <= limit:
            raise ValueError(f"count must be between 1 and {limit}, got {count}")
        self._limit = limit
        self._count = count
        self._rng = rng or random.Random()

    @classmethod
    def from_policy(
        cls, policy: TriagePolicy, count: Optional[int] = None
    ) -> "SimilarCaseFinder":
        return cls(references=policy.similar_case_references, count=count)

    def find(self, notification: Notification) -> list[str]:
        """Return reference cases for ``notification``.

        Selection does not yet depend on the notification's content.
        """
        count = self._count if self._count is not None else self._rng.randint(1, self._limit)
        return self._references[:count]
