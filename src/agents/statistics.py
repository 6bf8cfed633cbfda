"""
Baseline Statistics Engine.

Deterministic aggregates over review records: product identity, star
distribution, variant breakdown and review volume over time. No LLM
involvement; the output is the fallback for every enrichment field.
"""

import logging
import re
from collections import Counter
from typing import Dict, List, Sequence

import pandas as pd

from src.models.analysis import (
    AnalysisResult,
    ProductInfo,
    TimeSeriesPoint,
    VariantBreakdown,
)
from src.models.review import ReviewRecord
from src.utils.coercion import round_half_up

logger = logging.getLogger(__name__)


# Headlines that exports sometimes copy into the product-title column
GENERIC_REVIEW_PHRASES = (
    "loved it",
    "great product",
    "highly recommend",
    "best purchase",
    "works perfectly",
    "disappointed",
    "average",
    "good but",
    "waste of money",
    "stopped working",
)

STAR_RANKS = (1, 2, 3, 4, 5)
BAR_CHAR = "█"
BAR_WIDTH = 20
MIN_TITLE_LENGTH = 10
ALTERNATIVE_TITLE_LENGTH = 15
UNKNOWN_VARIANT = "Unknown"
UNKNOWN_PRODUCT = "Unknown Product"
PRODUCT_LABEL = "产品"

# Time component: "T" after a digit, or whitespace before a clock time
_TIME_SEPARATOR = re.compile(r"(?<=\d)T|\s+(?=\d{1,2}:\d{2})")


def looks_like_review_title(title: str) -> bool:
    """True if a title reads like a review headline rather than a product name."""
    if len(title) < MIN_TITLE_LENGTH:
        return True
    lowered = title.lower()
    return any(phrase in lowered for phrase in GENERIC_REVIEW_PHRASES)


def find_dominant_asin(records: Sequence[ReviewRecord]) -> str:
    """
    ASIN with the most reviews.

    Ties go to the ASIN that reached the winning count first in a single
    left-to-right scan. Empty ASINs are ignored.
    """
    counts: Counter = Counter()
    best_asin = ""
    best_count = 0
    for record in records:
        if not record.asin:
            continue
        counts[record.asin] += 1
        if counts[record.asin] > best_count:
            best_count = counts[record.asin]
            best_asin = record.asin
    return best_asin


def infer_title(records: Sequence[ReviewRecord], main_asin: str) -> str:
    """Product title for the dominant ASIN, guarding against review headlines."""
    candidate = next((r.title for r in records if r.asin == main_asin), "")
    if not candidate:
        candidate = (records[0].title if records else "") or UNKNOWN_PRODUCT

    if not looks_like_review_title(candidate):
        return candidate

    alternative = next(
        (
            r.title for r in records
            if r.asin == main_asin
            and len(r.title) > ALTERNATIVE_TITLE_LENGTH
            and not looks_like_review_title(r.title)
        ),
        None
    )
    if alternative:
        return alternative

    logger.debug(f"No usable product title for {main_asin}, using placeholder")
    return f"{PRODUCT_LABEL} {main_asin}"


def _date_only(value: str) -> str:
    return _TIME_SEPARATOR.split(value.strip(), maxsplit=1)[0]


def build_time_series(records: Sequence[ReviewRecord]) -> List[TimeSeriesPoint]:
    """
    Review counts per day, ascending by date.

    Only dates that occur are emitted. Dates that cannot be parsed sort
    after all parseable ones, in first-seen order.
    """
    counts: Counter = Counter(_date_only(r.date) for r in records if r.date.strip())
    if not counts:
        return []

    dates = list(counts.keys())
    parsed = pd.to_datetime(pd.Series(dates), errors="coerce", format="mixed")
    order = sorted(
        range(len(dates)),
        key=lambda i: (pd.isna(parsed[i]), parsed[i] if not pd.isna(parsed[i]) else 0, i)
    )
    return [TimeSeriesPoint(date=dates[i], count=counts[dates[i]]) for i in order]


def _variant_breakdown(records: Sequence[ReviewRecord]) -> Dict[str, VariantBreakdown]:
    breakdown: Dict[str, VariantBreakdown] = {}
    for record in records:
        variant = record.variant or UNKNOWN_VARIANT
        stats = breakdown.setdefault(variant, VariantBreakdown())
        stats.count += 1
        if record.rating in STAR_RANKS:
            stats.star_distribution[record.rating] += 1

        # Unknown ratings (0) fall into the negative bucket
        if record.rating >= 4:
            stats.positive += 1
        elif record.rating == 3:
            stats.neutral += 1
        else:
            stats.negative += 1
    return breakdown


def compute_baseline(records: Sequence[ReviewRecord]) -> AnalysisResult:
    """
    Compute the LLM-independent analysis for a review set.

    Args:
        records: Parsed reviews

    Returns:
        AnalysisResult with every enrichment field at its empty placeholder
    """
    main_asin = find_dominant_asin(records)
    title = infer_title(records, main_asin)

    star_distribution = {rank: 0 for rank in STAR_RANKS}
    for record in records:
        if record.rating in STAR_RANKS:
            star_distribution[record.rating] += 1

    # Percentages are over rated reviews so the five buckets sum to ~100
    rated_total = sum(star_distribution.values())
    star_percent = {}
    star_text = {}
    for rank in STAR_RANKS:
        if rated_total > 0:
            share = star_distribution[rank] / rated_total
            star_percent[rank] = round_half_up(share * 100)
            star_text[rank] = BAR_CHAR * round_half_up(share * BAR_WIDTH)
        else:
            star_percent[rank] = 0
            star_text[rank] = ""

    by_asin = dict(Counter(r.asin for r in records if r.asin))
    by_model = dict(Counter(r.variant for r in records if r.variant))

    result = AnalysisResult(
        product_info=ProductInfo(
            main_asin=main_asin,
            title=title,
            total_reviews=len(records),
            variant_stats_by_asin=by_asin,
            variant_stats_by_model=by_model
        ),
        star_distribution=star_distribution,
        star_distribution_percent=star_percent,
        star_distribution_text=star_text,
        variant_analysis=_variant_breakdown(records),
        reviews_over_time=build_time_series(records)
    )

    logger.info(
        f"Baseline computed: {len(records)} reviews, main ASIN {main_asin or '-'}, "
        f"{rated_total} rated, {len(result.variant_analysis)} variants"
    )
    return result
