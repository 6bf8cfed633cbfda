"""
Unit tests for Response Reconciliation.

Payloads mirror shapes seen from different models and prompt versions.
"""

import copy

import pytest

from src.agents.reconciliation import merge_enrichment
from src.agents.statistics import compute_baseline
from src.models.analysis import AnalysisResult
from src.models.review import ReviewRecord


@pytest.fixture
def baseline():
    records = [
        ReviewRecord(asin="B0MAIN", title="Insulated Water Bottle 32oz", rating=5,
                     variant="Blue", date="2024-01-02"),
        ReviewRecord(asin="B0MAIN", title="Loved it", rating=4, variant="Blue", date="2024-01-03"),
        ReviewRecord(asin="B0OTHER", title="Leaks", rating=1, variant="Red", date="2024-01-03"),
    ]
    return compute_baseline(records)


def assert_complete(result):
    """Every field has its canonical type."""
    assert isinstance(result, AnalysisResult)
    assert isinstance(result.product_info.title, str)
    assert isinstance(result.topic_clusters, list)
    assert isinstance(result.user_insights.purchase_motivations, list)
    assert isinstance(result.user_insights.unmet_needs, list)
    assert isinstance(result.user_insights.personas, list)
    assert isinstance(result.pros_cons.pros, list)
    assert isinstance(result.pros_cons.cons, list)
    assert isinstance(result.return_reasons, list)
    assert isinstance(result.improvement_suggestions, list)
    assert isinstance(result.typical_reviews, list)
    assert isinstance(result.star_distribution, dict)
    result.to_dict()


def test_merge_none_equals_baseline(baseline):
    merged = merge_enrichment(baseline, None)
    assert merged == baseline
    assert merged is not baseline


def test_merge_empty_object_equals_baseline(baseline):
    assert merge_enrichment(baseline, {}) == baseline


def test_merge_does_not_mutate_baseline(baseline):
    snapshot = copy.deepcopy(baseline)
    payload = {
        "productInfo": {"title": "Premium Insulated Steel Bottle", "variantStatsByAsin": {"X": 1}},
        "starDistribution": {"5星": {"count": 10, "percentage": "50%", "chart": "█"}},
        "userInsights": {"personas": ["Hikers"]},
    }
    merged = merge_enrichment(baseline, payload)

    assert baseline == snapshot
    merged.product_info.variant_stats_by_model["new"] = 1
    merged.star_distribution[5] = 99
    assert baseline == snapshot


@pytest.mark.parametrize("payload", [
    [],
    "not json",
    42,
    {"sentimentAnalysis": "positive"},
    {"topicClusters": {"name": "x"}},
    {"topicClusters": [None, 3, "text", {"examples": "nope"}]},
    {"userInsights": []},
    {"userInsights": {"purchaseMotivations": 5, "personas": {"x": 1}}},
    {"prosCons": {"pros": "good", "cons": [None, {"frequency": []}]}},
    {"prosCons": []},
    {"starDistribution": [1, 2, 3]},
    {"starDistribution": {"5星": "many", "4星": None}},
    {"productInfo": {"title": 12345678901, "variantStats": "x"}},
    {"returnReasons": [{"evidence": {"a": 1}}, "x"]},
    {"improvementSuggestions": [{"priority": ["high"]}]},
    {"typicalReviews": [{"weight": "heavy", "rating": "five", "tags": "a,b"}, None]},
    {"typicalReviews": [{"weight": float("inf"), "rating": float("nan")}]},
])
def test_merge_never_raises(baseline, payload):
    assert_complete(merge_enrichment(baseline, payload))


def test_sentiment_direct_and_nested(baseline):
    merged = merge_enrichment(baseline, {
        "sentimentAnalysis": {
            "positive": "62%",
            "neutral": {"percentage": "13%"},
            "negative": 25,
            "analysis": "Mostly happy",
        }
    })
    s = merged.sentiment_analysis
    assert (s.positive, s.neutral, s.negative) == (62, 13, 25)
    assert s.summary == "Mostly happy"


def test_sentiment_summary_prefers_summary(baseline):
    merged = merge_enrichment(baseline, {
        "sentimentAnalysis": {"summary": "A", "analysis": "B"}
    })
    assert merged.sentiment_analysis.summary == "A"
    assert merged.sentiment_analysis.positive == 0


def test_topic_clusters(baseline):
    merged = merge_enrichment(baseline, {
        "topicClusters": [
            {"name": "Leaks", "percentage": "30%", "summary": "Lid leaks",
             "examples": [{"en": "It leaks", "cn": "漏水"}]},
            {"topicName": "Design", "percentage": {"percentage": 20},
             "typicalSnippet": {"original": "Looks great", "translation": "好看"}},
            {},
        ]
    })
    first, second, third = merged.topic_clusters

    assert (first.name, first.percentage, first.summary) == ("Leaks", 30, "Lid leaks")
    assert [(e.en, e.cn) for e in first.examples] == [("It leaks", "漏水")]
    assert (second.name, second.percentage) == ("Design", 20)
    assert [(e.en, e.cn) for e in second.examples] == [("Looks great", "好看")]
    assert (third.name, third.percentage, third.summary, third.examples) == ("未知主题", 0, "", [])


def test_user_insights_alternate_shapes(baseline):
    merged = merge_enrichment(baseline, {
        "userInsights": {
            "purchaseMotivation": [{"insight": "Gift"}, "Replacement"],
            "unmetNeed": "Bigger size",
            "consumerProfile": {
                "userCharacteristics": [{"characteristic": "Commuters"}, "Students"]
            },
        }
    })
    insights = merged.user_insights
    assert insights.purchase_motivations == ["Gift", "Replacement"]
    assert insights.unmet_needs == ["Bigger size"]
    assert insights.personas == ["Commuters", "Students"]


def test_user_insights_direct_arrays_and_fallback(baseline):
    merged = merge_enrichment(baseline, {
        "userInsights": {
            "purchaseMotivations": ["Hydration"],
            "consumerProfile": {"summary": "Outdoor people"},
        }
    })
    insights = merged.user_insights
    assert insights.purchase_motivations == ["Hydration"]
    assert insights.unmet_needs == baseline.user_insights.unmet_needs
    assert insights.personas == ["Outdoor people"]


def test_pros_cons_alternate_keys(baseline):
    merged = merge_enrichment(baseline, {
        "prosCons": {
            "pros": [{"point": "Cold for 24h", "originalQuote": "ice all day", "frequency": "40%"}],
        }
    })
    assert len(merged.pros_cons.pros) == 1
    pro = merged.pros_cons.pros[0]
    assert (pro.summary, pro.original_text, pro.frequency) == ("Cold for 24h", "ice all day", 40)
    # Missing list means empty, not baseline
    assert merged.pros_cons.cons == []


def test_star_distribution_label_override(baseline):
    merged = merge_enrichment(baseline, {
        "starDistribution": {
            "5星": {"count": 120, "percentage": "60%", "chart": "████████████"},
            "1星": {"count": "20", "percentage": 10, "chart": "██"},
        }
    })
    # Partial override: only the supplied ranks remain
    assert merged.star_distribution == {5: 120, 1: 20}
    assert merged.star_distribution_percent == {5: 60, 1: 10}
    assert merged.star_distribution_text == {5: "████████████", 1: "██"}


def test_star_distribution_numeric_shape_ignored(baseline):
    merged = merge_enrichment(baseline, {"starDistribution": {"5": 100, "1": 3}})
    assert merged.star_distribution == baseline.star_distribution


def test_product_info_title_guard(baseline):
    rejected = merge_enrichment(baseline, {"productInfo": {"title": "Loved it so much!!"}})
    short = merge_enrichment(baseline, {"productInfo": {"title": "Bottle 32oz"[:10]}})
    accepted = merge_enrichment(baseline, {"productInfo": {"title": "Premium Insulated Steel Bottle"}})

    assert rejected.product_info.title == baseline.product_info.title
    assert short.product_info.title == baseline.product_info.title
    assert accepted.product_info.title == "Premium Insulated Steel Bottle"


def test_product_info_fallback_chains(baseline):
    merged = merge_enrichment(baseline, {
        "productInfo": {
            "category": "Sports & Outdoors",
            "variantStats": {"byAsin": {"B0MAIN": 2}, "byModel": {"Blue": "2"}},
        }
    })
    info = merged.product_info
    assert info.category == "Sports & Outdoors"
    assert info.variant_stats_by_asin == {"B0MAIN": 2}
    assert info.variant_stats_by_model == {"Blue": 2}
    assert info.main_asin == baseline.product_info.main_asin
    assert info.total_reviews == baseline.product_info.total_reviews


def test_product_info_primary_key_wins(baseline):
    merged = merge_enrichment(baseline, {
        "productInfo": {
            "variantStatsByAsin": {"A": 1},
            "variantStats": {"byAsin": {"B": 2}},
        }
    })
    assert merged.product_info.variant_stats_by_asin == {"A": 1}
    assert merged.product_info.variant_stats_by_model == baseline.product_info.variant_stats_by_model


def test_return_reasons_and_suggestions(baseline):
    merged = merge_enrichment(baseline, {
        "returnReasons": [
            {"reason": "Leaking lid", "evidence": ["leaks", "wet bag", "spilled"], "frequency": "15%"},
            {"reason": "Dented", "evidence": "arrived dented", "frequency": 5},
        ],
        "improvementSuggestions": [
            {"suggestion": "Better seal", "evidence": "leaks", "priority": "HIGH"},
            {"suggestion": "More colors", "evidence": "only blue", "priority": "urgent"},
        ],
    })
    assert [(r.reason, r.frequency) for r in merged.return_reasons] == [("Leaking lid", 15), ("Dented", 5)]
    assert merged.return_reasons[1].evidence == ["arrived dented"]
    assert [s.priority for s in merged.improvement_suggestions] == ["high", "medium"]


def test_empty_arrays_replace_baseline(baseline):
    merged = merge_enrichment(baseline, {"returnReasons": [], "typicalReviews": []})
    assert merged.return_reasons == []
    assert merged.typical_reviews == []


def test_typical_reviews(baseline):
    merged = merge_enrichment(baseline, {
        "typicalReviews": [
            {"original": "Keeps ice for two days", "translation": "冰块能保持两天", "rating": 5,
             "link": "https://example.com/r/1", "insight": "Insulation is the hook",
             "typicalReason": "Most cited benefit", "weight": "85", "tags": ["好评", "保温"]},
            {"originalText": "Meh", "weight": 40.5},
        ]
    })
    first, second = merged.typical_reviews
    assert first.original_text == "Keeps ice for two days"
    assert first.translated_text == "冰块能保持两天"
    assert first.review_url == "https://example.com/r/1"
    assert first.ai_insight == "Insulation is the hook"
    assert first.weight == 85
    assert first.tags == ["好评", "保温"]
    assert (second.weight, second.rating, second.tags) == (40.5, 0, [])


def test_failing_field_keeps_other_fields(baseline):
    """Test that one unusable field does not discard the rest of the payload."""
    merged = merge_enrichment(baseline, {
        "topicClusters": [{"name": "Leaks", "percentage": 30}],
        "sentimentAnalysis": {"positive": 10 ** 400, "negative": 10 ** 400},
        "typicalReviews": [{"originalText": "Keeps ice", "weight": 10 ** 400, "rating": 10 ** 400}],
    })

    assert [t.name for t in merged.topic_clusters] == ["Leaks"]
    assert merged.sentiment_analysis.negative == 0
    assert merged.typical_reviews[0].weight == 0
    assert merged.typical_reviews[0].rating == 0
    assert_complete(merged)


def test_field_error_falls_back_per_field(baseline, monkeypatch):
    from src.agents import reconciliation

    def broken(block):
        raise ValueError("bad cluster")

    monkeypatch.setattr(reconciliation, "_merge_topic_clusters", broken)
    merged = merge_enrichment(baseline, {
        "topicClusters": [{"name": "Leaks"}],
        "returnReasons": [{"reason": "Leaking lid", "frequency": 15}],
    })

    assert merged.topic_clusters == baseline.topic_clusters
    assert [r.reason for r in merged.return_reasons] == ["Leaking lid"]


def test_product_info_empty_maps_replace_baseline(baseline):
    merged = merge_enrichment(baseline, {
        "productInfo": {"variantStatsByAsin": {}, "variantStats": {"byModel": {}}}
    })
    assert merged.product_info.variant_stats_by_asin == {}
    assert merged.product_info.variant_stats_by_model == {}
    assert baseline.product_info.variant_stats_by_asin != {}
