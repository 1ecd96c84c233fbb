import re
from collections import Counter

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "is", "at", "which", "on", "a", "an", "and", "or", "but",
        "in", "with", "to", "for", "of", "as", "by", "that", "this",
        "it", "from", "be", "are", "was", "were", "been", "have", "has",
        "had", "do", "does", "did", "will", "would", "could", "should",
        "may", "might", "can", "so", "if", "than", "all", "any", "some",
    }
)

DEFAULT_KEYWORD_LIMIT = 5

_WHITESPACE_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"\b[a-z]+\b")


def normalize_text(text: str) -> str:
    """Collapse newlines and whitespace runs into single spaces."""
    return _WHITESPACE_RE.sub(" ", text.replace("\n", " ")).strip()


def extract_keywords(text: str, limit: int = DEFAULT_KEYWORD_LIMIT) -> list[str]:
    """Return the most frequent meaningful words of *text*.

    Words of three letters or fewer and stop words are ignored. Ties keep
    first-occurrence order.
    """
    words = _WORD_RE.findall(normalize_text(text).lower())
    counts = Counter(word for word in words if len(word) > 3 and word not in STOP_WORDS)
    return [word for word, _count in counts.most_common(limit)]
