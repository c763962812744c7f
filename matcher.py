"""Exact and fuzzy matching of transcripts against the command catalog.

The exact pass tests raw lowercased input as well as normalized input, so a
pattern written in native script is never degraded by diacritic folding. The
fuzzy pass scores every (command, pattern) pair and keeps the first pair that
reaches the best score, which makes catalog declaration order the tie-break.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein

from models import NO_MATCH, Command, MatchResult, MatchType
from normalizer import normalize

log = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.7
DEFAULT_CONTAINMENT_BASE = 0.8
DEFAULT_CONTAINMENT_WEIGHT = 0.2


def similarity(
    a: str,
    b: str,
    containment_base: float = DEFAULT_CONTAINMENT_BASE,
    containment_weight: float = DEFAULT_CONTAINMENT_WEIGHT,
) -> float:
    """Score two already-normalized strings in ``[0, 1]``.

    Containment of the shorter string in the longer one scores
    ``containment_base + len(shorter) / len(longer) * containment_weight``;
    anything else scores ``(len(longer) - distance) / len(longer)``.
    """
    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if not longer:
        return 1.0
    if shorter in longer:
        return containment_base + (len(shorter) / len(longer)) * containment_weight
    distance = Levenshtein.distance(shorter, longer)
    return (len(longer) - distance) / len(longer)


def _windows(text: str, size: int) -> list[str]:
    words = text.split()
    if size <= 0 or len(words) <= size:
        return []
    return [" ".join(words[i : i + size]) for i in range(len(words) - size + 1)]


class CommandMatcher:
    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        containment_base: float = DEFAULT_CONTAINMENT_BASE,
        containment_weight: float = DEFAULT_CONTAINMENT_WEIGHT,
        token_windows: bool = True,
    ) -> None:
        self.threshold = threshold
        self.containment_base = containment_base
        self.containment_weight = containment_weight
        self.token_windows = token_windows

    def match(self, raw_input: str, catalog: Iterable[Command]) -> MatchResult:
        commands = list(catalog)
        normalized = normalize(raw_input)
        if not normalized:
            return NO_MATCH

        exact = self._exact(raw_input.lower().strip(), normalized, commands)
        if exact is not None:
            log.info("Exact match %r for %r", exact.name, raw_input)
            return MatchResult(command=exact, match_type=MatchType.EXACT, score=1.0)

        best: Optional[Command] = None
        best_score = 0.0
        for command in commands:
            for pattern in command.patterns:
                score = self.score(normalized, normalize(pattern))
                if score > best_score:
                    best, best_score = command, score

        if best is not None and best_score > self.threshold:
            log.info("Fuzzy match %r for %r (score %.3f)", best.name, raw_input, best_score)
            return MatchResult(command=best, match_type=MatchType.FUZZY, score=best_score)

        log.info("No command matched %r (best score %.3f)", raw_input, best_score)
        return NO_MATCH

    def score(self, normalized_input: str, normalized_pattern: str) -> float:
        """Score one pair, also trying input word runs as long as the pattern."""
        best = similarity(
            normalized_input, normalized_pattern, self.containment_base, self.containment_weight
        )
        if self.token_windows:
            for window in _windows(normalized_input, len(normalized_pattern.split())):
                best = max(
                    best,
                    similarity(window, normalized_pattern, self.containment_base, self.containment_weight),
                )
        return best

    def suggest(self, raw_input: str, catalog: Iterable[Command], limit: int = 3) -> list[Command]:
        """Return the ``limit`` commands closest to ``raw_input``, best first."""
        normalized = normalize(raw_input)
        if not normalized or limit <= 0:
            return []
        scored = []
        for command in catalog:
            top = max(
                (self.score(normalized, normalize(p)) for p in command.patterns),
                default=0.0,
            )
            scored.append((top, command))
        # sorted() is stable, so equal scores keep catalog order
        scored = sorted(scored, key=lambda item: item[0], reverse=True)
        return [command for _, command in scored[:limit]]

    @staticmethod
    def _exact(lowered: str, normalized: str, commands: list[Command]) -> Optional[Command]:
        for command in commands:
            for pattern in command.patterns:
                if pattern.lower() in lowered or normalize(pattern) in normalized:
                    return command
        return None
