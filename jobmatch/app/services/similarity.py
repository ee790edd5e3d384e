"""
Rank job postings against a resume vector.

Both sides are produced with mean pooling + L2 normalization, so cosine
similarity is the plain dot product. On top of that a small additive boost
rewards postings whose declared skills appear verbatim in the resume text:

    boost = min(exact_skill_matches * 0.05, 0.25)
    score = min(clamp(dot, 0, 1) + boost, 1.0)

Postings scoring <= 0 are dropped. Results are ordered by score descending,
then job_id ascending.
"""
import logging
import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..config import RECOMMEND_DEFAULT_LIMIT, RECOMMEND_MAX_LIMIT
from ..schemas.match import MatchResult

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


logger = logging.getLogger(__name__)

SKILL_BOOST_PER_MATCH = 0.05
SKILL_BOOST_CAP = 0.25


@dataclass
class Candidate:
    job_id: int
    vector: list[float] | None
    skills: list[str] = field(default_factory=list)
    # Display passthrough copied into MatchResult (job_title, company, location, ...)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RankingOutcome:
    results: list[MatchResult]
    considered: int
    skipped: int


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    if value < lo:
        return lo
    if value > hi:
        return hi
    return float(value)


def clamp_limit(raw: Any, *, default: int = RECOMMEND_DEFAULT_LIMIT, maximum: int = RECOMMEND_MAX_LIMIT) -> int:
    """
    Parse the leading integer of `raw` ("3.5" -> 3, "10abc" -> 10).
    None, non-numeric, zero or negative -> default; anything above maximum -> maximum.
    """
    match = _LEADING_INT_RE.match("" if raw is None else str(raw))
    if not match:
        return default
    n = int(match.group(1))
    if n <= 0:
        return default
    return min(n, maximum)


def dot_product(a: list[float], b: list[float]) -> float:
    if not a or not b:
        raise ValueError("Vectors must be non-empty")
    if len(a) != len(b):
        raise ValueError(f"Vector dimension mismatch: {len(a)} vs {len(b)}")
    return math.fsum(x * y for x, y in zip(a, b))


def cosine_similarity(a: list[float], b: list[float], *, already_normalized: bool = True) -> float:
    """Cosine similarity clamped to [0, 1]. Raises ValueError on empty or mismatched vectors."""
    dot = dot_product(a, b)
    if already_normalized:
        return clamp(dot)
    na = math.sqrt(math.fsum(x * x for x in a))
    nb = math.sqrt(math.fsum(y * y for y in b))
    if na <= 0.0 or nb <= 0.0:
        return 0.0
    return clamp(dot / (na * nb))


def count_skill_matches(skills: Iterable[str], query_text_lower: str) -> int:
    # Plain substring containment: short skills like "c" or "go" can match inside other words.
    matches = 0
    for skill in skills or []:
        s = str(skill or "").lower().strip()
        if s and s in query_text_lower:
            matches += 1
    return matches


def skill_boost(exact_skill_matches: int) -> float:
    return min(exact_skill_matches * SKILL_BOOST_PER_MATCH, SKILL_BOOST_CAP)


def rank(
    *,
    query_vector: list[float],
    candidates: Iterable[Candidate],
    query_text: str,
    limit: Any = None,
) -> RankingOutcome:
    if not query_vector:
        raise ValueError("Query vector must be non-empty")

    top_n = clamp_limit(limit)
    query_lower = (query_text or "").lower()
    dim = len(query_vector)

    scored: list[MatchResult] = []
    considered = 0
    skipped = 0

    for cand in candidates:
        considered += 1
        vector = cand.vector or []
        if len(vector) != dim:
            skipped += 1
            continue
        try:
            base = cosine_similarity(query_vector, vector)
        except ValueError:
            skipped += 1
            continue

        matches = count_skill_matches(cand.skills, query_lower)
        score = min(base + skill_boost(matches), 1.0)
        if score <= 0.0:
            continue

        scored.append(
            MatchResult(
                **cand.metadata,
                job_id=cand.job_id,
                skills=list(cand.skills or []),
                similarity_score=score,
                match_percentage=round(score * 100, 2),
                exact_skill_matches=matches,
            )
        )

    if skipped:
        logger.warning("Skipped %s of %s candidates with missing or mismatched vectors", skipped, considered)

    scored.sort(key=lambda r: (-r.similarity_score, r.job_id))
    return RankingOutcome(results=scored[:top_n], considered=considered, skipped=skipped)
