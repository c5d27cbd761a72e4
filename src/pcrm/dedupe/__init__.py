"""Duplicate detection: pairwise scoring and suggestion generation."""

from pcrm.dedupe.similarity import (
    PairScore,
    build_trigrams,
    normalize,
    score_pair,
    trigram_similarity,
)
from pcrm.dedupe.suggestions import (
    suggest_duplicates,
    suggest_duplicates_for_workspace,
    suggest_for_contact,
)

__all__ = [
    "PairScore",
    "build_trigrams",
    "normalize",
    "score_pair",
    "suggest_duplicates",
    "suggest_duplicates_for_workspace",
    "suggest_for_contact",
    "trigram_similarity",
]
