from dataclasses import dataclass, replace
from typing import Tuple

from .signatures import DEFAULT_TABLE

MIN_LENGTH = 10
MAX_LENGTH = 1500
PAGE_LENGTH = 5000
MIN_ACCEPT_SCORE = 8
REJECT_SCORE = -100
KEYWORD_WEIGHT = 3
SHORT_TEXT = 50


@dataclass(frozen=True)
class TextScore:
    score: float
    reasons: Tuple[str, ...] = ()


def score_text(text, table=None):
    table = table or DEFAULT_TABLE
    s = (text or "").strip()
    sig = table.obstruction_match(s)
    if sig:
        return TextScore(REJECT_SCORE, (f"obstruction:{sig}",))
    excluded = table.excluded_match(s)
    if excluded:
        return TextScore(REJECT_SCORE, (f"excluded:{excluded}",))
    if table.is_chrome_only(s) or table.has_chrome_line(s):
        return TextScore(REJECT_SCORE, ("ui-chrome",))

    n = len(s)
    score = 0
    reasons = []
    if n < MIN_LENGTH:
        score -= 10
        reasons.append("too-short")
    elif n <= MAX_LENGTH:
        score += 10
        reasons.append("length-ok")
    elif n <= PAGE_LENGTH:
        score += 2
        reasons.append("long")
    else:
        score -= 25
        reasons.append("page-dump")

    keywords = table.distinct_keywords(s)
    if keywords:
        score += KEYWORD_WEIGHT * len(keywords)
        reasons.append(f"keywords:{len(keywords)}")
    elif n < SHORT_TEXT:
        score -= 5
        reasons.append("short-no-keywords")
    return TextScore(score, tuple(reasons))


def score_candidate(candidate, table=None):
    return replace(candidate, score=score_text(candidate.text, table).score)


def rank_candidates(candidates, table=None):
    scored = [score_candidate(c, table) for c in candidates]
    # stable: ties keep extraction order
    return sorted(scored, key=lambda c: -c.score)


def select_best(candidates, threshold=MIN_ACCEPT_SCORE, table=None):
    ranked = rank_candidates(candidates, table)
    if ranked and ranked[0].score >= threshold:
        return ranked[0]
    return None
