"""Matching primitives: text, similarity, tolerances, scoring and grouped search."""

from .text import extract_keywords, extract_vendor_keywords, normalize_name
from .similarity import levenshtein_similarity, keyword_overlap_similarity
from .tolerance import amounts_match, date_proximity_score, dates_within_days, days_between
from .scoring import MATCH_SCORE_LADDER, calculate_match_score, get_match_explanation
from .names import description_contains_name
from .relatedness import descriptions_are_related, group_has_related_descriptions
from .subset_sum import find_combination, find_subset_sum

__all__ = [
    "extract_keywords",
    "extract_vendor_keywords",
    "normalize_name",
    "levenshtein_similarity",
    "keyword_overlap_similarity",
    "amounts_match",
    "date_proximity_score",
    "dates_within_days",
    "days_between",
    "MATCH_SCORE_LADDER",
    "calculate_match_score",
    "get_match_explanation",
    "description_contains_name",
    "descriptions_are_related",
    "group_has_related_descriptions",
    "find_combination",
    "find_subset_sum",
]
