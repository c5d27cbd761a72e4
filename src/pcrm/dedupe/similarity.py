"""Pairwise duplicate-likelihood scoring for contacts.

The score combines exact identifier signals (shared normalized email or
phone) with fuzzy signals (trigram name similarity, and, only on a name
match, same city and shared organization). Every contribution is recorded
as a reason so a suggestion can be explained to the operator.

Scoring is pure and deterministic: no clock, no randomness, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pcrm.config import DEFAULT_DEDUPE_SETTINGS, DedupeSettings
from pcrm.models.contact import ChannelType, Contact, normalize_text
from pcrm.models.dedupe import DedupeReason

TRIGRAM_PADDING = "  "


def normalize(value: str | None) -> str:
    """Trim and lowercase; None becomes ""."""
    return normalize_text(value)


def build_trigrams(value: str) -> set[str]:
    """Set of 3-character substrings of the value padded with two spaces per side."""
    padded = f"{TRIGRAM_PADDING}{value}{TRIGRAM_PADDING}"
    return {padded[index : index + 3] for index in range(len(padded) - 2)}


def trigram_similarity(left: str, right: str) -> float:
    """Dice coefficient over the trigram sets of two strings.

    Callers pass already-normalized strings. Either side empty yields 0.0.
    """
    if not left or not right:
        return 0.0
    left_set = build_trigrams(left)
    right_set = build_trigrams(right)
    intersection = len(left_set & right_set)
    return (2 * intersection) / (len(left_set) + len(right_set))


@dataclass(frozen=True)
class PairScore:
    """Score and ordered reasons for one contact pair."""

    score: float
    reasons: list[DedupeReason] = field(default_factory=list)
    name_similarity: float = 0.0

    @property
    def is_candidate(self) -> bool:
        """A pair is only a suggestion if at least one reason fired."""
        return bool(self.reasons)


def _has_overlap(left: list[str], right: list[str]) -> bool:
    return bool(left) and not set(left).isdisjoint(right)


def _has_org_overlap(left: Contact, right: Contact) -> bool:
    left_orgs = {normalize(org) for org in left.organizations}
    left_orgs.discard("")
    return any(normalize(org) in left_orgs for org in right.organizations)


def score_pair(
    left: Contact,
    right: Contact,
    settings: DedupeSettings | None = None,
) -> PairScore:
    """Score how likely two contacts describe the same person.

    Args:
        left: First contact.
        right: Second contact.
        settings: Weights and threshold; defaults to the built-in constants.

    Returns:
        PairScore with score in [0, 1] rounded to 2 decimals and the reasons
        in the order they fired.
    """
    settings = settings or DEFAULT_DEDUPE_SETTINGS
    reasons: list[DedupeReason] = []
    score = 0.0

    if _has_overlap(left.values_for(ChannelType.EMAIL), right.values_for(ChannelType.EMAIL)):
        reasons.append(DedupeReason.EXACT_EMAIL)
        score += settings.email_weight

    if _has_overlap(left.values_for(ChannelType.PHONE), right.values_for(ChannelType.PHONE)):
        reasons.append(DedupeReason.EXACT_PHONE)
        score += settings.phone_weight

    name_similarity = trigram_similarity(normalize(left.name), normalize(right.name))
    if name_similarity >= settings.name_threshold:
        reasons.append(DedupeReason.FUZZY_NAME)
        score += name_similarity * settings.name_weight

        left_city = normalize(left.city)
        if left_city and left_city == normalize(right.city):
            reasons.append(DedupeReason.SAME_CITY)
            score += settings.city_bonus

        if _has_org_overlap(left, right):
            reasons.append(DedupeReason.SHARED_ORGANIZATION)
            score += settings.organization_bonus

    return PairScore(
        score=round(min(1.0, score), 2),
        reasons=reasons,
        name_similarity=name_similarity,
    )
