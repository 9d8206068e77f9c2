"""Related-image ranking and gallery search over an in-memory catalog.

Both functions scan every record they are given, which is fine for a
curated catalog of a few thousand images. A larger catalog would want an
inverted index over category and keywords instead.
"""
from snapvault.models import ImageRecord
from typing import Iterable, List, Optional, Tuple

CATEGORY_WEIGHT = 10
KEYWORD_WEIGHT = 2
DEFAULT_RELATED_LIMIT = 5
ALL_CATEGORIES = "All"

def _keyword_set(keywords: Iterable[str]) -> set:
    return {k.lower() for k in keywords}

def shared_keywords(a: ImageRecord, b: ImageRecord) -> int:
    """Number of distinct keywords of `a` that also appear in `b`, ignoring case."""
    return len(_keyword_set(a.keywords) & _keyword_set(b.keywords))

def relevance_score(reference: ImageRecord, candidate: ImageRecord) -> int:
    score = CATEGORY_WEIGHT if candidate.category == reference.category else 0
    return score + KEYWORD_WEIGHT * shared_keywords(candidate, reference)

def rank_related(
    reference: ImageRecord,
    catalog: Iterable[ImageRecord],
    limit: int = DEFAULT_RELATED_LIMIT,
) -> List[Tuple[ImageRecord, int]]:
    """Return up to `limit` (image, score) pairs, best first.

    The reference itself and zero-score candidates are skipped. Ties keep
    catalog order.
    """
    scored = []
    for candidate in catalog:
        if candidate.id == reference.id:
            continue
        score = relevance_score(reference, candidate)
        if score > 0:
            scored.append((candidate, score))

    # sorted() is stable, including with reverse=True
    scored = sorted(scored, key=lambda pair: pair[1], reverse=True)
    return scored[:max(limit, 0)]

def filter_images(
    images: Iterable[ImageRecord],
    query: str = "",
    category: Optional[str] = None,
) -> List[ImageRecord]:
    """Gallery search: substring match on title, description or keywords, plus a category filter."""
    needle = (query or "").strip().lower()
    results = []
    for image in images:
        if category and category != ALL_CATEGORIES and image.category != category:
            continue
        if needle and not (
            needle in image.title.lower()
            or needle in image.description.lower()
            or any(needle in k.lower() for k in image.keywords)
        ):
            continue
        results.append(image)
    return results
