"""Detection of borrower/investor names inside bank descriptions."""

from typing import Optional

from .text import normalize_name

MIN_NAME_LENGTH = 3
# Name words at least this long may match anywhere in the description;
# shorter ones (acronyms like "ADW") must match a whole word.
SUBSTRING_WORD_LENGTH = 4

BUSINESS_NAME_SCORE = 1.0
PERSONAL_NAME_SCORE = 0.9
BUSINESS_WORD_SCORE = 0.8
BUSINESS_SHORT_WORD_SCORE = 0.85
PERSONAL_WORD_SCORE = 0.7
PERSONAL_SHORT_WORD_SCORE = 0.75


def _word_score(
    name_norm: str,
    desc_norm: str,
    substring_score: float,
    short_word_score: float,
) -> float:
    desc_words = desc_norm.split(" ")
    for word in name_norm.split(" "):
        if len(word) < MIN_NAME_LENGTH:
            continue
        if len(word) >= SUBSTRING_WORD_LENGTH:
            if word in desc_norm:
                return substring_score
        elif word in desc_words:
            return short_word_score
    return 0.0


def description_contains_name(
    description: Optional[str],
    personal_name: Optional[str],
    business_name: Optional[str] = None,
) -> float:
    """
    Score (0-1) how strongly a bank description names a borrower or investor.

    Checked in priority order, first hit wins:
    full business name, full personal name, a business-name word,
    a personal-name word.
    """
    if not description:
        return 0.0

    desc_norm = normalize_name(description)
    name_norm = normalize_name(personal_name)
    biz_norm = normalize_name(business_name)

    if len(biz_norm) >= MIN_NAME_LENGTH and biz_norm in desc_norm:
        return BUSINESS_NAME_SCORE

    if len(name_norm) >= MIN_NAME_LENGTH and name_norm in desc_norm:
        return PERSONAL_NAME_SCORE

    if biz_norm:
        score = _word_score(biz_norm, desc_norm, BUSINESS_WORD_SCORE, BUSINESS_SHORT_WORD_SCORE)
        if score:
            return score

    if name_norm:
        return _word_score(name_norm, desc_norm, PERSONAL_WORD_SCORE, PERSONAL_SHORT_WORD_SCORE)

    return 0.0
