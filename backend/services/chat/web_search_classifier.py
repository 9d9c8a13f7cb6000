"""
Rule-based decision whether a question needs context beyond the transcript.

The rules are deliberately over-inclusive: a false positive costs one extra
LLM call, a false negative costs an answer that misses current context.
"""
import re
from datetime import datetime
from typing import List, Optional

# Competitive, recency, commercial and market terms
WEB_SEARCH_KEYWORDS = [
    # competition / comparison
    "competitor", "competitors", "competition", "alternative", "alternatives",
    "vs", "versus", "compare", "compared", "comparison", "better than", "similar to",
    # recency
    "current", "latest", "recent", "recently", "today", "this year", "news", "update",
    # commercial
    "price", "prices", "pricing", "cost", "costs", "how much does",
    # market
    "market", "markets", "industry", "trend", "trends", "trending",
    "reviews", "rating", "ratings",
]

QUESTION_PATTERNS = [
    re.compile(r"\bwho is\b", re.IGNORECASE),
    re.compile(r"\bwhat is\b.*\bdoing\b", re.IGNORECASE),
    re.compile(r"\bis there\b", re.IGNORECASE),
    re.compile(r"\bare there\b", re.IGNORECASE),
    re.compile(r"\bhow does\b.*\bcompare\b", re.IGNORECASE),
    re.compile(r"\bwhat are the\b.*\boptions\b", re.IGNORECASE),
]

BUSINESS_TERMS = [
    "company", "companies", "startup", "startups", "business", "businesses",
    "app", "apps", "tool", "tools", "platform", "platforms",
    "product", "products", "service", "services", "brand", "brands",
]

CURRENTLY_TERMS = ["nowadays", "currently", "right now", "these days", "at the moment"]


def _word_pattern(terms: List[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(term) for term in sorted(terms, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


KEYWORD_PATTERN = _word_pattern(WEB_SEARCH_KEYWORDS)
BUSINESS_PATTERN = _word_pattern(BUSINESS_TERMS)
CURRENTLY_PATTERN = _word_pattern(CURRENTLY_TERMS)


def _year_tokens(now: Optional[datetime] = None) -> List[str]:
    year = (now or datetime.now()).year
    return [str(year - 1), str(year), str(year + 1)]


def needs_web_search(question: str, video_title: Optional[str] = None) -> bool:
    """
    Decide whether to augment the transcript before answering.

    True when the question contains a current/external-information keyword
    or a near year, matches an interrogative pattern, or pairs a business
    term with a "currently" term. The title does not affect the decision.
    """
    if not question:
        return False

    if KEYWORD_PATTERN.search(question):
        return True

    if any(re.search(rf"\b{year}\b", question) for year in _year_tokens()):
        return True

    if any(pattern.search(question) for pattern in QUESTION_PATTERNS):
        return True

    return bool(BUSINESS_PATTERN.search(question) and CURRENTLY_PATTERN.search(question))
