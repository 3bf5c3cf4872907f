"""
Mentor/mentee match scoring

Pure functions: no I/O, no randomness. Scores are a weighted sum of
industry overlap, expertise overlap, stage relevance and a flat
availability term, clamped to [0.30, 0.95] and reported as a percentage.
"""

import math
import re
from typing import Sequence

from .schemas import MenteeProfile, MentorProfile, ScoreBreakdown

INDUSTRY_WEIGHT = 0.35
EXPERTISE_WEIGHT = 0.35
STAGE_KEYWORD_SCORE = 0.2
STAGE_GENERAL_SCORE = 0.12
STAGE_NONE_SCORE = 0.05
STAGE_UNSPECIFIED_SCORE = 0.1
AVAILABILITY_BONUS = 0.1
MIN_SCORE = 0.3
MAX_SCORE = 0.95

EXACT_MATCH = 1.0
SUBSTRING_MATCH = 0.7
SHARED_WORD_WEIGHT = 0.4
SIGNIFICANT_WORD_LENGTH = 3

STAGE_KEYWORDS: dict[str, list[str]] = {
    "pre-seed": ["fundraising", "angel", "pre-seed", "startup strategy", "mvp", "validation"],
    "seed": ["fundraising", "seed", "venture", "growth", "go-to-market", "product-market fit"],
    "early": ["scaling", "growth", "team building", "hiring", "series a", "go-to-market"],
    "growth": ["scaling", "growth hacking", "series b", "expansion", "operations"],
    "late": ["scaling", "enterprise", "operations", "ipo", "acquisition"],
}
DEFAULT_STAGE_KEYWORDS = ["startup", "business"]

# Matched exactly (case-sensitive) against mentor expertise areas
GENERAL_EXPERTISE = ["Startup Strategy", "Business Development", "Fundraising", "Product Management"]

_WORD_SPLIT = re.compile(r"[\s/\-]+")


def to_percentage(fraction: float) -> int:
    """Fraction as an integer percentage, rounding half up"""
    return int(math.floor(fraction * 100 + 0.5))


def get_stage_keywords(stage: str) -> list[str]:
    return STAGE_KEYWORDS.get(stage.lower(), DEFAULT_STAGE_KEYWORDS)


def _label_similarity(item1: str, item2: str) -> float:
    a = item1.lower()
    b = item2.lower()

    if a == b:
        return EXACT_MATCH
    if a in b or b in a:
        return SUBSTRING_MATCH

    words1 = _WORD_SPLIT.split(a)
    words2 = _WORD_SPLIT.split(b)
    shared_words = [
        w for w in words1
        if len(w) > SIGNIFICANT_WORD_LENGTH and any(w2 in w or w in w2 for w2 in words2)
    ]
    if shared_words:
        return SHARED_WORD_WEIGHT * (len(shared_words) / max(len(words1), len(words2)))
    return 0.0


def calculate_smart_overlap(list1: Sequence[str], list2: Sequence[str]) -> float:
    """
    Fuzzy overlap between two label lists, in [0, 1].

    Every (a, b) pair contributes 1.0 for a case-insensitive exact match,
    0.7 when one contains the other, or a shared-word fraction scaled by
    0.4. The sum is normalised by the longer list's length and capped at 1.
    Duplicate labels each contribute.
    """
    if not list1 or not list2:
        return 0.0

    match_score = 0.0
    for item1 in list1:
        for item2 in list2:
            similarity = _label_similarity(item1, item2)
            if similarity:
                match_score += similarity

    return min(1.0, match_score / max(len(list1), len(list2)))


def calculate_stage_score(mentee: MenteeProfile, mentor: MentorProfile) -> float:
    if not mentee.startup_stage:
        return STAGE_UNSPECIFIED_SCORE

    stage_keywords = get_stage_keywords(mentee.startup_stage)
    has_stage_expertise = any(
        keyword in exp.lower() for exp in mentor.expertise_areas for keyword in stage_keywords
    )
    if has_stage_expertise:
        return STAGE_KEYWORD_SCORE

    has_general_expertise = any(exp in GENERAL_EXPERTISE for exp in mentor.expertise_areas)
    return STAGE_GENERAL_SCORE if has_general_expertise else STAGE_NONE_SCORE


def calculate_match_score(mentee: MenteeProfile, mentor: MentorProfile) -> int:
    """
    Match score as an integer percentage in [30, 95].

    Both overlap terms compare the mentee's industry focus: once against the
    mentor's industries and once against the mentor's expertise areas.
    """
    score = 0.0

    # Accumulation order is fixed so scores stay bit-for-bit reproducible
    score += calculate_smart_overlap(mentee.industry_focus, mentor.industry_focus) * INDUSTRY_WEIGHT
    score += calculate_smart_overlap(mentee.industry_focus, mentor.expertise_areas) * EXPERTISE_WEIGHT
    score += calculate_stage_score(mentee, mentor)
    score += AVAILABILITY_BONUS

    return to_percentage(max(MIN_SCORE, min(MAX_SCORE, score)))


def score_breakdown(mentee: MenteeProfile, mentor: MentorProfile) -> ScoreBreakdown:
    """Each scoring component as a percentage of its own maximum"""
    industry = calculate_smart_overlap(mentee.industry_focus, mentor.industry_focus)
    expertise = calculate_smart_overlap(mentee.industry_focus, mentor.expertise_areas)
    stage = calculate_stage_score(mentee, mentor) / STAGE_KEYWORD_SCORE

    return ScoreBreakdown(
        industry_match=to_percentage(industry),
        expertise_match=to_percentage(expertise),
        stage_relevance=to_percentage(stage),
        availability=100,
    )
