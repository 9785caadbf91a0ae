"""Heuristic tag derivation from page text.

Pure functions with no I/O: frequency-ranked keywords and regex-based
category detection over a product's title and description.
"""

import re
from collections import Counter

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "up", "about", "into", "through", "during",
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had",
    "do", "does", "did", "will", "would", "should", "could", "may", "might",
    "can", "your", "you", "we", "our", "their", "this", "that", "these", "those",
})

CATEGORY_PATTERNS: dict[str, re.Pattern] = {
    "saas": re.compile(r"\b(saas|software as a service|cloud software)\b"),
    "productivity": re.compile(r"\b(productivity|task|todo|workflow|organization)\b"),
    "design": re.compile(r"\b(design|ui|ux|interface|figma|sketch)\b"),
    "development": re.compile(r"\b(developer|development|code|coding|programming|api)\b"),
    "analytics": re.compile(r"\b(analytics|tracking|metrics|data|statistics)\b"),
    "collaboration": re.compile(r"\b(collaboration|team|collaborate|share|sharing)\b"),
    "project-management": re.compile(r"\b(project management|project|management|planning)\b"),
    "communication": re.compile(r"\b(communication|chat|messaging|slack|discord)\b"),
    "marketing": re.compile(r"\b(marketing|email|campaign|seo|social media)\b"),
    "ecommerce": re.compile(r"\b(ecommerce|e-commerce|shop|store|shopping|cart)\b"),
    "finance": re.compile(r"\b(finance|accounting|invoice|payment|billing)\b"),
    "crm": re.compile(r"\b(crm|customer|sales|lead)\b"),
    "ai": re.compile(r"\b(ai|artificial intelligence|machine learning|ml|gpt)\b"),
    "automation": re.compile(r"\b(automation|automate|workflow|integration)\b"),
    "no-code": re.compile(r"\b(no-code|low-code|nocode|lowcode)\b"),
}

_NON_WORD = re.compile(r"[^a-z\s-]")


def extract_keywords(text: str, limit: int = 5) -> list[str]:
    """Return the most frequent content words of a text.

    Words are lower-cased letters/hyphens longer than two characters, stop
    words excluded. Ties keep first-occurrence order.
    """
    words = [
        word
        for word in _NON_WORD.sub(" ", text.lower()).split()
        if len(word) > 2 and word not in STOP_WORDS
    ]
    return [word for word, _ in Counter(words).most_common(limit)]


def detect_categories(text: str) -> list[str]:
    """Return every category label whose pattern matches the text."""
    lowered = text.lower()
    return [category for category, pattern in CATEGORY_PATTERNS.items() if pattern.search(lowered)]


def domain_tag(hostname: str | None) -> str | None:
    """First meaningful segment of a host name ("www.notion.so" -> "notion")."""
    if not hostname:
        return None
    host = hostname.lower()
    if host.startswith("www."):
        host = host[4:]
    first = host.split(".")[0]
    return first if len(first) > 2 else None
