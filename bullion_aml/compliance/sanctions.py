"""Sanctions list screening.

Screens customer names against a DFAT-style consolidated list. Two passes:
  - exact: the normalised name appears inside an entity's name, or equals
    one of its aliases (score 1.0)
  - fuzzy: thefuzz similarity between the normalised name and each entity
    name and alias (0.0-1.0), boosted by 0.3 when the date of birth matches

Uses the higher of fuzz.ratio() and fuzz.token_sort_ratio() so that
transliteration variants ("Mohammad" vs "Mohammed") and reordered names
("Ahmad Mohammad") both score highly. Candidates at or above 0.6 are kept;
anything at or above 0.7 is a match.
"""

import logging
import re
import unicodedata
from datetime import date, datetime, timezone
from typing import Optional

from thefuzz import fuzz

from bullion_aml.models import (
    AuditEntry,
    ComplianceConfig,
    RescreeningResult,
    SanctionedEntity,
    SanctionsMatch,
    ScreeningResult,
)
from bullion_aml.storage.memory import MemoryStore

logger = logging.getLogger(__name__)

DOB_MATCH_BOOST = 0.3


def normalize_name(name: str) -> str:
    """Lowercase, strip accents and punctuation, collapse whitespace."""
    decomposed = unicodedata.normalize("NFD", name.lower())
    without_accents = "".join(c for c in decomposed if not unicodedata.combining(c))
    alphanumeric = re.sub(r"[^a-z0-9\s]", "", without_accents)
    return re.sub(r"\s+", " ", alphanumeric).strip()


def name_similarity(a: str, b: str) -> float:
    """Similarity of two names on a 0.0-1.0 scale."""
    na, nb = normalize_name(a), normalize_name(b)
    if not na or not nb:
        return 0.0
    return max(fuzz.ratio(na, nb), fuzz.token_sort_ratio(na, nb)) / 100


def _to_match(entity: SanctionedEntity, score: float) -> SanctionsMatch:
    return SanctionsMatch(
        name=entity.full_name,
        match_score=round(score, 4),
        source=entity.source,
        reference_number=entity.reference_number,
        date_of_birth=entity.date_of_birth,
        nationality=entity.nationality,
    )


def _exact_matches(
    normalized: str, entities: list[SanctionedEntity]
) -> list[SanctionsMatch]:
    if not normalized:
        return []
    matches: list[SanctionsMatch] = []
    for entity in entities:
        aliases = {normalize_name(a) for a in entity.aliases}
        if normalized in normalize_name(entity.full_name) or normalized in aliases:
            matches.append(_to_match(entity, 1.0))
    return matches


def _fuzzy_matches(
    full_name: str,
    entities: list[SanctionedEntity],
    date_of_birth: Optional[date],
    candidate_threshold: float,
) -> list[SanctionsMatch]:
    matches: list[SanctionsMatch] = []
    for entity in entities:
        score = name_similarity(full_name, entity.full_name)

        if date_of_birth and entity.date_of_birth and date_of_birth == entity.date_of_birth:
            score = min(1.0, score + DOB_MATCH_BOOST)

        for alias in entity.aliases:
            score = max(score, name_similarity(full_name, alias))

        if score >= candidate_threshold:
            matches.append(_to_match(entity, score))
    return matches


def _deduplicate(matches: list[SanctionsMatch]) -> list[SanctionsMatch]:
    """Keep the first (highest-priority) hit per reference number and name."""
    seen: set[str] = set()
    unique: list[SanctionsMatch] = []
    for match in matches:
        key = f"{match.reference_number}-{match.name}"
        if key in seen:
            continue
        seen.add(key)
        unique.append(match)
    return unique


def screen_name(
    first_name: str,
    last_name: str,
    entities: list[SanctionedEntity],
    date_of_birth: Optional[date] = None,
    config: Optional[ComplianceConfig] = None,
) -> ScreeningResult:
    """Screen one person against the sanctions list."""
    if config is None:
        config = ComplianceConfig()

    full_name = f"{first_name} {last_name}".strip()
    normalized = normalize_name(full_name)

    # Exact hits come first so they win de-duplication
    all_matches = _exact_matches(normalized, entities) + _fuzzy_matches(
        full_name, entities, date_of_birth, config.sanctions_candidate_threshold
    )
    confident = [
        m
        for m in _deduplicate(all_matches)
        if m.match_score >= config.sanctions_match_threshold
    ]

    logger.info("Screened '%s': %d potential matches", full_name, len(confident))

    return ScreeningResult(
        is_match=bool(confident),
        matches=confident,
        screened_at=datetime.now(timezone.utc),
        screened_name=full_name,
    )


def rescreen_customers(
    store: MemoryStore,
    entities: list[SanctionedEntity],
    config: Optional[ComplianceConfig] = None,
) -> RescreeningResult:
    """Periodic re-screen of every customer not already flagged as sanctioned."""
    result = RescreeningResult()
    customers = [c for c in store.get_customers() if not c.is_sanctioned]
    result.total_customers = len(customers)
    logger.info("Re-screening %d customers", result.total_customers)

    for customer in customers:
        screening = screen_name(
            customer.first_name,
            customer.last_name,
            entities,
            date_of_birth=customer.date_of_birth,
            config=config,
        )
        result.screened += 1
        if screening.is_match:
            result.new_matches += 1
            result.matched_customer_ids.append(customer.customer_id)
            store.upsert_customer(customer.model_copy(update={"is_sanctioned": True}))
            store.add_audit(
                AuditEntry(
                    action_type="sanctions_match",
                    entity_type="customer",
                    entity_id=customer.customer_id,
                    description="Periodic re-screen matched sanctions list",
                    metadata={
                        "screening_type": "periodic_rescreen",
                        "matches": [m.reference_number for m in screening.matches],
                    },
                    timestamp=screening.screened_at,
                )
            )
            logger.warning(
                "New sanctions match: customer %s (%s)",
                customer.customer_id,
                screening.screened_name,
            )

    logger.info(
        "Re-screening complete: %d screened, %d new matches",
        result.screened,
        result.new_matches,
    )
    return result
