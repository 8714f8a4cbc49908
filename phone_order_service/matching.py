"""
matching.py — Variant Matching for Voice-Driven Product Search

Callers describe the variant they want in free text ("large blue", "the
small one"). This module scores every variant of the products returned by a
catalog search against that description and returns them best first.

Scoring (first rule that applies wins, case-insensitive):
    1. Exact equality with the variant title or the option label  → 100
    2. Substring containment in either direction                   → 75
    3. Token overlap: share of requested tokens that are contained
       in, or contain, any candidate token, scaled to 50

Variants scoring 0 are dropped. An empty description keeps every variant
with score 0, in catalog order.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from .models import VariantCandidate

log = logging.getLogger(__name__)

EXACT_SCORE = 100.0
SUBSTRING_SCORE = 75.0
TOKEN_OVERLAP_WEIGHT = 50.0

OPTION_FIELDS = ("option1", "option2", "option3")
DEFAULT_VARIANT_TITLE = "Default Title"


def option_labels(variant: Dict[str, Any]) -> List[str]:
    """Returns the variant's option values in order, skipping absent ones."""
    return [str(variant[key]) for key in OPTION_FIELDS if variant.get(key)]


def composite_label(variant: Dict[str, Any]) -> str:
    return " / ".join(option_labels(variant))


def _tokens(text: str) -> List[str]:
    return [token for token in text.lower().split() if token != "/"]


def score_variant(requested: str, variant_title: str, label: str) -> float:
    """
    Scores one variant against the requested description.

    Args:
        requested (str): Caller's free-text variant description.
        variant_title (str): The variant's own title.
        label (str): Composite option label ("Large / Blue").

    Returns:
        float: Score in [0, 100]. 0 for an empty description.
    """
    wanted = requested.strip().lower()
    if not wanted:
        return 0.0

    fields = [value.strip().lower() for value in (variant_title, label) if value and value.strip()]

    if any(wanted == value for value in fields):
        return EXACT_SCORE

    if any(wanted in value or value in wanted for value in fields):
        return SUBSTRING_SCORE

    requested_tokens = _tokens(wanted)
    candidate_tokens = [token for value in fields for token in _tokens(value)]
    if not requested_tokens or not candidate_tokens:
        return 0.0

    matched = sum(
        1 for token in requested_tokens
        if any(token in candidate or candidate in token for candidate in candidate_tokens)
    )
    return round(matched / len(requested_tokens) * TOKEN_OVERLAP_WEIGHT, 2)


def _display_name(product_title: str, variant_title: str) -> str:
    if not variant_title or variant_title == DEFAULT_VARIANT_TITLE:
        return product_title
    return f"{product_title} - {variant_title}"


def match_variants(products: Iterable[Dict[str, Any]], requested: Optional[str]) -> List[VariantCandidate]:
    """
    Ranks the variants of all given products against a free-text description.

    Args:
        products (Iterable[dict]): Catalog products as returned by the product
            search, each with 'title' and a 'variants' list.
        requested (str, optional): The caller's variant description.

    Returns:
        List[VariantCandidate]: Candidates sorted by descending match_score.
            Products without variants contribute nothing.
    """
    requested = (requested or "").strip()
    candidates = []

    for product in products:
        variants = product.get("variants") or []
        if not variants:
            log.debug(f"Product '{product.get('title')}' has no variants, skipped.")
            continue

        product_title = product.get("title") or "Unknown Product"
        for variant in variants:
            variant_title = variant.get("title") or ""
            labels = option_labels(variant)
            score = score_variant(requested, variant_title, composite_label(variant))

            if requested and score == 0:
                continue

            candidates.append(VariantCandidate(
                product_title=product_title,
                variant_id=variant.get("id"),
                variant_title=variant_title,
                option_labels=tuple(labels),
                inventory_quantity=int(variant.get("inventory_quantity") or 0),
                price=variant.get("price"),
                match_score=score,
                display_name=_display_name(product_title, variant_title),
            ))

    # sorted() is stable, so equal scores keep catalog order
    return sorted(candidates, key=lambda candidate: candidate.match_score, reverse=True)
