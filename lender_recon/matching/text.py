"""
Text normalization for free-text bank descriptions.

Bank descriptions are noisy: payment-network prefixes, references, phone
numbers and URLs surround the one or two words that identify the payer.
"""

import re
from typing import List, Optional

STOP_WORDS = frozenset({
    "from", "to", "the", "and", "for", "with", "payment", "transfer",
    "in", "out", "ltd", "limited", "bacs", "chaps",
})

VENDOR_STOP_WORDS = frozenset({
    "from", "to", "the", "and", "for", "with", "payment", "transfer",
    "in", "out", "ltd", "limited", "plc", "inc", "corp", "llc",
    "card", "visa", "mastercard", "debit", "credit", "pos", "atm",
    "ref", "reference", "direct", "faster", "bacs", "chaps", "fps",
    "gbp", "usd", "eur", "aud", "purchase", "sale", "fee", "charge",
})

COUNTRY_CODES = frozenset({
    "gb", "uk", "au", "us", "de", "fr", "es", "it", "nl", "ie", "ca", "nz",
})

MAX_VENDOR_KEYWORDS = 5
MIN_KEYWORD_LENGTH = 3

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_CORPORATE_SUFFIX = re.compile(r"\b(ltd|limited|plc|inc|llc|llp|co|company)\b")

_WWW = re.compile(r"www\.")
_URL = re.compile(r"https?://\S+")
_DOMAIN_SUFFIX = re.compile(r"\.(com|co\.uk|org|net|io|app|co|uk|au|de|fr|es|it|nl|ie|ca|nz)")
_INTL_PHONE = re.compile(r"\+?\d{1,4}[\s\-]?\d{6,14}")
_LOCAL_PHONE = re.compile(r"\d{3}[\s\-]?\d{3}[\s\-]?\d{4}")
_TWO_LETTER_WORD = re.compile(r"\b([a-z]{2})\b")
_LONG_NUMBER = re.compile(r"\b\d{5,}\b")
_PREFIXED_REFERENCE = re.compile(r"\b[a-z]{1,2}\d{5,}\b")


def _tokens(text: str) -> List[str]:
    return [t for t in _NON_ALNUM.sub(" ", text).split() if t]


def extract_keywords(text: Optional[str]) -> List[str]:
    """
    Extract meaningful keywords from text, in order.

    Lower-cases, replaces non-alphanumerics with spaces and drops short
    tokens and common connector/banking words.
    """
    if not text:
        return []
    return [
        word for word in _tokens(text.lower())
        if len(word) >= MIN_KEYWORD_LENGTH and word not in STOP_WORDS
    ]


def extract_vendor_keywords(text: Optional[str]) -> List[str]:
    """
    Stricter keyword extraction for identifying a vendor in a messy description.

    Strips URLs and domains, phone numbers, country codes and reference
    numbers before tokenizing, and returns at most five keywords.
    """
    if not text:
        return []

    cleaned = text.lower()

    cleaned = _WWW.sub(" ", cleaned)
    cleaned = _URL.sub(" ", cleaned)
    cleaned = _DOMAIN_SUFFIX.sub(" ", cleaned)

    cleaned = _INTL_PHONE.sub(" ", cleaned)
    cleaned = _LOCAL_PHONE.sub(" ", cleaned)

    cleaned = _TWO_LETTER_WORD.sub(
        lambda m: " " if m.group(1) in COUNTRY_CODES else m.group(0),
        cleaned,
    )

    cleaned = _LONG_NUMBER.sub(" ", cleaned)
    cleaned = _PREFIXED_REFERENCE.sub(" ", cleaned)

    keywords = [
        word for word in _tokens(cleaned)
        if len(word) >= MIN_KEYWORD_LENGTH and word not in VENDOR_STOP_WORDS
    ]
    return keywords[:MAX_VENDOR_KEYWORDS]


def normalize_name(name: Optional[str]) -> str:
    """Normalize a person or company name (drops Ltd, Limited, PLC, ...)."""
    if not name:
        return ""
    cleaned = _CORPORATE_SUFFIX.sub("", name.lower())
    cleaned = _NON_ALNUM.sub(" ", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()
