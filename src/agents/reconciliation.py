"""
Response Reconciliation.

Merges an LLM enrichment payload into a baseline analysis. The payload is
untrusted: every field is read through UntrustedPayload with an explicit
fallback chain, and anything unusable falls back to the baseline value.
"""

import copy
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from src.agents.statistics import GENERIC_REVIEW_PHRASES
from src.models.analysis import (
    AnalysisResult,
    ImprovementSuggestion,
    ProConItem,
    ProductInfo,
    ProsCons,
    ReturnReason,
    SentimentAnalysis,
    TopicCluster,
    TopicExample,
    TypicalReview,
    UserInsights,
)
from src.models.payload import UntrustedPayload
from src.utils.coercion import coerce_number, coerce_percentage, round_half_up

logger = logging.getLogger(__name__)


UNKNOWN_TOPIC = "未知主题"
MIN_ENRICHED_TITLE_LENGTH = 10
PRIORITIES = ("high", "medium", "low")
DEFAULT_PRIORITY = "medium"

# Star-rank labels the model uses for {"5星": {"count", "percentage", "chart"}}
STAR_LABELS = {
    5: ("5星", "5-star", "5 stars"),
    4: ("4星", "4-star", "4 stars"),
    3: ("3星", "3-star", "3 stars"),
    2: ("2星", "2-star", "2 stars"),
    1: ("1星", "1-star", "1 star"),
}


def _is_acceptable_title(title: str) -> bool:
    if len(title) <= MIN_ENRICHED_TITLE_LENGTH:
        return False
    lowered = title.lower()
    return not any(phrase in lowered for phrase in GENERIC_REVIEW_PHRASES)


def _item_text(item: UntrustedPayload, field: str) -> str:
    """Scalar item as text, or ``field`` of an object item."""
    if item.is_object:
        return item.first(field, "summary").text()
    return item.text()


def _insight_list(
    block: UntrustedPayload,
    plural_key: str,
    singular_key: str,
    item_field: str,
    fallback: List[str]
) -> List[str]:
    """
    One user-insight list.

    Chain: plural array -> singular field (array of objects/strings, or a
    single object/scalar) -> baseline.
    """
    direct = block.get(plural_key)
    if direct:
        if direct.is_list:
            return [t for t in (_item_text(i, item_field) for i in direct.items()) if t]
        return [t for t in [_item_text(direct, "summary")] if t]

    singular = block.get(singular_key)
    if singular:
        if singular.is_list:
            return [t for t in (_item_text(i, item_field) for i in singular.items()) if t]
        return [t for t in [_item_text(singular, "summary")] if t]

    return list(fallback)


def _merge_user_insights(block: UntrustedPayload, baseline: UserInsights) -> UserInsights:
    motivations = _insight_list(
        block, "purchaseMotivations", "purchaseMotivation", "insight",
        baseline.purchase_motivations
    )
    unmet_needs = _insight_list(
        block, "unmetNeeds", "unmetNeed", "insight", baseline.unmet_needs
    )

    personas = None
    if block.get("personas") or block.get("persona"):
        personas = _insight_list(block, "personas", "persona", "characteristic", [])
    else:
        profile = block.get("consumerProfile")
        if profile:
            characteristics = profile.get("userCharacteristics")
            if characteristics:
                personas = [
                    t for t in (_item_text(i, "characteristic") for i in characteristics.items())
                    if t
                ]
            else:
                personas = [t for t in [profile.get("summary").text()] if t]
    if personas is None:
        personas = list(baseline.personas)

    return UserInsights(
        purchase_motivations=motivations,
        unmet_needs=unmet_needs,
        personas=personas
    )


def _merge_sentiment(block: UntrustedPayload) -> SentimentAnalysis:
    def share(key: str) -> float:
        node = block.get(key)
        nested = node.get("percentage")
        return coerce_percentage(nested.raw if nested else node.raw)

    return SentimentAnalysis(
        positive=share("positive"),
        neutral=share("neutral"),
        negative=share("negative"),
        summary=block.first("summary", "analysis").text()
    )


def _topic_examples(cluster: UntrustedPayload) -> List[TopicExample]:
    examples = cluster.get("examples")
    if examples.is_list:
        result = []
        for example in examples.items():
            if example.is_object:
                result.append(TopicExample(
                    en=example.first("en", "original").text(),
                    cn=example.first("cn", "translation").text()
                ))
            elif example.text():
                result.append(TopicExample(en=example.text(), cn=""))
        return result

    snippet = cluster.get("typicalSnippet")
    if snippet:
        if snippet.is_object:
            return [TopicExample(
                en=snippet.first("original", "en").text(),
                cn=snippet.first("translation", "cn").text()
            )]
        return [TopicExample(en=snippet.text(), cn="")]
    return []


def _merge_topic_clusters(block: UntrustedPayload) -> List[TopicCluster]:
    return [
        TopicCluster(
            name=cluster.first("name", "topicName").text() or UNKNOWN_TOPIC,
            percentage=coerce_percentage(cluster.get("percentage").raw),
            summary=cluster.get("summary").text(),
            examples=_topic_examples(cluster)
        )
        for cluster in block.items()
    ]


def _pro_con_items(block: UntrustedPayload) -> List[ProConItem]:
    return [
        ProConItem(
            summary=item.first("summary", "point").text(),
            original_text=item.first("originalText", "originalQuote").text(),
            frequency=coerce_percentage(item.get("frequency").raw)
        )
        for item in block.items()
    ]


def _merge_star_distribution(block: UntrustedPayload, baseline: AnalysisResult):
    """
    Replace the star maps when the payload uses star-label keys.

    Ranks absent from the payload are absent from the result; the
    override is not all-or-nothing.
    """
    labelled = {
        rank: block.first(*labels)
        for rank, labels in STAR_LABELS.items()
    }
    if not any(labelled.values()):
        return (
            dict(baseline.star_distribution),
            dict(baseline.star_distribution_percent),
            dict(baseline.star_distribution_text),
        )

    distribution: Dict[int, int] = {}
    percent: Dict[int, float] = {}
    text: Dict[int, str] = {}
    for rank in sorted(STAR_LABELS, reverse=True):
        entry = labelled[rank]
        if not entry:
            continue
        distribution[rank] = round_half_up(coerce_number(entry.get("count").raw))
        percent[rank] = coerce_percentage(entry.get("percentage").raw)
        text[rank] = entry.get("chart").text()

    logger.debug(f"Star distribution overridden for ranks {sorted(distribution)}")
    return distribution, percent, text


def _count_map(node: UntrustedPayload, fallback: Dict[str, float]) -> Dict[str, float]:
    """Counts from an object node (an empty object counts); ``fallback`` otherwise."""
    if not node.is_object:
        return dict(fallback)
    return {str(k): coerce_number(v) for k, v in node.raw.items()}


def _merge_product_info(block: UntrustedPayload, baseline: ProductInfo) -> ProductInfo:
    title = block.get("title").text()
    by_asin = block.get("variantStatsByAsin") or block.path("variantStats", "byAsin")
    by_model = block.get("variantStatsByModel") or block.path("variantStats", "byModel")

    return replace(
        baseline,
        title=title if _is_acceptable_title(title) else baseline.title,
        category=block.get("category").optional_text() or baseline.category,
        variant_stats_by_asin=_count_map(by_asin, baseline.variant_stats_by_asin),
        variant_stats_by_model=_count_map(by_model, baseline.variant_stats_by_model)
    )


def _evidence_list(node: UntrustedPayload) -> List[str]:
    if node.is_list:
        return node.text_list()
    return [t for t in [node.text()] if t]


def _merge_return_reasons(block: UntrustedPayload) -> List[ReturnReason]:
    return [
        ReturnReason(
            reason=item.first("reason", "title").text(),
            evidence=_evidence_list(item.first("evidence", "evidences")),
            frequency=coerce_percentage(item.get("frequency").raw)
        )
        for item in block.items()
    ]


def _merge_improvements(block: UntrustedPayload) -> List[ImprovementSuggestion]:
    suggestions = []
    for item in block.items():
        priority = item.get("priority").text().strip().lower()
        evidence = item.get("evidence")
        suggestions.append(ImprovementSuggestion(
            suggestion=item.first("suggestion", "title").text(),
            evidence="; ".join(evidence.text_list()) if evidence.is_list else evidence.text(),
            priority=priority if priority in PRIORITIES else DEFAULT_PRIORITY
        ))
    return suggestions


def _merge_typical_reviews(block: UntrustedPayload) -> List[TypicalReview]:
    reviews = []
    for item in block.items():
        tags = item.get("tags")
        reviews.append(TypicalReview(
            original_text=item.first("originalText", "original").text(),
            translated_text=item.first("translatedText", "translation").text(),
            rating=round_half_up(coerce_number(item.get("rating").raw)),
            review_url=item.first("reviewUrl", "link").text(),
            ai_insight=item.first("aiInsight", "insight").text(),
            typical_reason=item.get("typicalReason").text(),
            weight=coerce_number(item.get("weight").raw),
            tags=tags.text_list() if tags.is_list else []
        ))
    return reviews


def _sentiment_fields(block: UntrustedPayload, baseline: AnalysisResult) -> dict:
    if not block.is_object:
        return {}
    return {"sentiment_analysis": _merge_sentiment(block)}


def _topic_fields(block: UntrustedPayload, baseline: AnalysisResult) -> dict:
    if not block.is_list:
        return {}
    return {"topic_clusters": _merge_topic_clusters(block)}


def _insight_fields(block: UntrustedPayload, baseline: AnalysisResult) -> dict:
    if not block.is_object:
        return {}
    return {"user_insights": _merge_user_insights(block, baseline.user_insights)}


def _pros_cons_fields(block: UntrustedPayload, baseline: AnalysisResult) -> dict:
    if not block:
        return {}
    return {"pros_cons": ProsCons(
        pros=_pro_con_items(block.get("pros")),
        cons=_pro_con_items(block.get("cons"))
    )}


def _star_fields(block: UntrustedPayload, baseline: AnalysisResult) -> dict:
    if not block.is_object:
        return {}
    distribution, percent, text = _merge_star_distribution(block, baseline)
    return {
        "star_distribution": distribution,
        "star_distribution_percent": percent,
        "star_distribution_text": text,
    }


def _product_fields(block: UntrustedPayload, baseline: AnalysisResult) -> dict:
    if not block.is_object:
        return {}
    return {"product_info": _merge_product_info(block, baseline.product_info)}


def _list_fields(attribute: str, merge):
    def fields(block: UntrustedPayload, baseline: AnalysisResult) -> dict:
        if not block.is_list:
            return {}
        return {attribute: merge(block)}
    return fields


# Payload key -> function returning the AnalysisResult fields it replaces
FIELD_MERGERS = (
    ("sentimentAnalysis", _sentiment_fields),
    ("topicClusters", _topic_fields),
    ("userInsights", _insight_fields),
    ("prosCons", _pros_cons_fields),
    ("starDistribution", _star_fields),
    ("productInfo", _product_fields),
    ("returnReasons", _list_fields("return_reasons", _merge_return_reasons)),
    ("improvementSuggestions", _list_fields("improvement_suggestions", _merge_improvements)),
    ("typicalReviews", _list_fields("typical_reviews", _merge_typical_reviews)),
)


def merge_enrichment(
    baseline: AnalysisResult,
    payload: Optional[Any]
) -> AnalysisResult:
    """
    Merge an enrichment payload into a baseline analysis.

    Args:
        baseline: Result of compute_baseline(); never modified
        payload: Parsed LLM JSON, or None when enrichment was unavailable

    Returns:
        A new AnalysisResult. Each field comes from the payload when it is
        usable there, otherwise from the baseline. A field that fails to
        merge keeps its baseline value without affecting the others.
    """
    result = copy.deepcopy(baseline)
    data = UntrustedPayload(payload)
    if not data.is_object:
        if payload is not None:
            logger.warning(f"Ignoring enrichment payload of type {type(payload).__name__}")
        return result

    for key, merger in FIELD_MERGERS:
        try:
            updates = merger(data.get(key), baseline)
        except (TypeError, ValueError, AttributeError, OverflowError) as e:
            logger.error(f"Could not merge {key}, keeping baseline value: {e}")
            continue
        for attribute, value in updates.items():
            setattr(result, attribute, value)

    logger.info(
        f"Merged enrichment: {len(result.topic_clusters)} topics, "
        f"{len(result.pros_cons.pros)} pros, {len(result.pros_cons.cons)} cons, "
        f"{len(result.typical_reviews)} typical reviews"
    )
    return result
