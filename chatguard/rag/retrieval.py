"""Keyword retrieval over the static knowledge base.

Always succeeds: any query that yields no scored chunk falls back to the full
knowledge base text.
"""

import re

from chatguard.rag.knowledge import KNOWLEDGE_BASE

STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "how", "i", "in", "is",
    "it", "of", "on", "or", "that", "the", "to", "was", "what", "when", "where", "who", "with",
})

MAX_TOP_K = 8
CHUNK_SEPARATOR = "\n\n---\n\n"

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_HEADING = re.compile(r"^##\s+(.+)$", re.MULTILINE)


def _normalize(text: str) -> str:
    return _NON_ALNUM.sub(" ", text.lower())


def tokenize(text: str) -> list[str]:
    return [token for token in _normalize(text).split() if len(token) > 2 and token not in STOP_WORDS]


def split_into_chunks(knowledge_base: str = KNOWLEDGE_BASE) -> list[str]:
    """Split on second-level headings, keeping each heading with its body."""
    chunks = [chunk.strip() for chunk in re.split(r"\n(?=##\s)", knowledge_base)]
    chunks = [chunk for chunk in chunks if chunk]
    return chunks or [knowledge_base]


KNOWLEDGE_CHUNKS = split_into_chunks()


def score_chunk(query_tokens: list[str], chunk: str) -> int:
    normalized_chunk = _normalize(chunk)
    score = sum(2 for token in query_tokens if token in normalized_chunk)

    heading = _HEADING.search(chunk)
    if heading:
        normalized_heading = _normalize(heading.group(1))
        score += sum(2 for token in query_tokens if token in normalized_heading)

    return score


def retrieve_context(query: str, top_k: int = 5) -> str:
    """Return the best-matching knowledge chunks for ``query``.

    Args:
        query: User question
        top_k: Number of chunks to keep (clamped to 1..8)

    Returns:
        Matching chunks joined by a separator, or the full knowledge base
    """
    trimmed = query.strip()
    if not trimmed:
        return KNOWLEDGE_BASE

    query_tokens = tokenize(trimmed)
    if not query_tokens:
        return KNOWLEDGE_BASE

    scored = [(score_chunk(query_tokens, chunk), chunk) for chunk in KNOWLEDGE_CHUNKS]
    ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: item[0], reverse=True)
    ranked = ranked[: max(1, min(top_k, MAX_TOP_K))]

    if not ranked:
        return KNOWLEDGE_BASE

    return CHUNK_SEPARATOR.join(chunk for _, chunk in ranked)
