"""
Analysis result data model.

The canonical, UI-facing report shape. A baseline analysis is an
AnalysisResult whose enrichment fields are still at their placeholders.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


def _int_keys(data: Optional[dict]) -> dict:
    """JSON object keys are strings; star ranks are ints in memory."""
    return {int(k): v for k, v in (data or {}).items()}


@dataclass
class ProductInfo:
    main_asin: str
    title: str
    total_reviews: int
    category: Optional[str] = None
    variant_stats_by_asin: Dict[str, float] = field(default_factory=dict)
    variant_stats_by_model: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "ProductInfo":
        return cls(
            main_asin=data.get("mainAsin", ""),
            title=data.get("title", ""),
            total_reviews=data.get("totalReviews", 0),
            category=data.get("category"),
            variant_stats_by_asin=data.get("variantStatsByAsin", {}),
            variant_stats_by_model=data.get("variantStatsByModel", {})
        )

    def to_dict(self) -> dict:
        return {
            "mainAsin": self.main_asin,
            "title": self.title,
            "category": self.category,
            "totalReviews": self.total_reviews,
            "variantStatsByAsin": dict(self.variant_stats_by_asin),
            "variantStatsByModel": dict(self.variant_stats_by_model)
        }


@dataclass
class VariantBreakdown:
    """Per-variant count, star histogram and rating-derived sentiment buckets."""
    count: int = 0
    star_distribution: Dict[int, int] = field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    )
    positive: int = 0
    neutral: int = 0
    negative: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "VariantBreakdown":
        sentiment = data.get("sentiment", {})
        return cls(
            count=data.get("count", 0),
            star_distribution=_int_keys(data.get("starDistribution")),
            positive=sentiment.get("positive", 0),
            neutral=sentiment.get("neutral", 0),
            negative=sentiment.get("negative", 0)
        )

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "starDistribution": dict(self.star_distribution),
            "sentiment": {
                "positive": self.positive,
                "neutral": self.neutral,
                "negative": self.negative
            }
        }


@dataclass
class SentimentAnalysis:
    positive: float  # Percentages
    neutral: float
    negative: float
    summary: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "SentimentAnalysis":
        return cls(
            positive=data.get("positive", 0),
            neutral=data.get("neutral", 0),
            negative=data.get("negative", 0),
            summary=data.get("summary", "")
        )

    def to_dict(self) -> dict:
        return {
            "positive": self.positive,
            "neutral": self.neutral,
            "negative": self.negative,
            "summary": self.summary
        }


@dataclass
class TopicExample:
    en: str  # Original review snippet
    cn: str  # Chinese translation

    def to_dict(self) -> dict:
        return {"en": self.en, "cn": self.cn}


@dataclass
class TopicCluster:
    name: str
    percentage: float
    summary: str = ""
    examples: List[TopicExample] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "TopicCluster":
        return cls(
            name=data.get("name", ""),
            percentage=data.get("percentage", 0),
            summary=data.get("summary", ""),
            examples=[
                TopicExample(en=e.get("en", ""), cn=e.get("cn", ""))
                for e in data.get("examples", [])
            ]
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "percentage": self.percentage,
            "summary": self.summary,
            "examples": [e.to_dict() for e in self.examples]
        }


@dataclass
class UserInsights:
    purchase_motivations: List[str] = field(default_factory=list)
    unmet_needs: List[str] = field(default_factory=list)
    personas: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "UserInsights":
        return cls(
            purchase_motivations=list(data.get("purchaseMotivations", [])),
            unmet_needs=list(data.get("unmetNeeds", [])),
            personas=list(data.get("personas", []))
        )

    def to_dict(self) -> dict:
        return {
            "purchaseMotivations": list(self.purchase_motivations),
            "unmetNeeds": list(self.unmet_needs),
            "personas": list(self.personas)
        }


@dataclass
class ProConItem:
    summary: str
    original_text: str = ""
    frequency: float = 0

    @classmethod
    def from_dict(cls, data: dict) -> "ProConItem":
        return cls(
            summary=data.get("summary", ""),
            original_text=data.get("originalText", ""),
            frequency=data.get("frequency", 0)
        )

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "originalText": self.original_text,
            "frequency": self.frequency
        }


@dataclass
class ProsCons:
    pros: List[ProConItem] = field(default_factory=list)
    cons: List[ProConItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "ProsCons":
        return cls(
            pros=[ProConItem.from_dict(p) for p in data.get("pros", [])],
            cons=[ProConItem.from_dict(c) for c in data.get("cons", [])]
        )

    def to_dict(self) -> dict:
        return {
            "pros": [p.to_dict() for p in self.pros],
            "cons": [c.to_dict() for c in self.cons]
        }


@dataclass
class ReturnReason:
    reason: str
    evidence: List[str] = field(default_factory=list)
    frequency: float = 0

    @classmethod
    def from_dict(cls, data: dict) -> "ReturnReason":
        return cls(
            reason=data.get("reason", ""),
            evidence=list(data.get("evidence", [])),
            frequency=data.get("frequency", 0)
        )

    def to_dict(self) -> dict:
        return {
            "reason": self.reason,
            "evidence": list(self.evidence),
            "frequency": self.frequency
        }


@dataclass
class ImprovementSuggestion:
    suggestion: str
    evidence: str = ""
    priority: str = "medium"  # "high", "medium", or "low"

    @classmethod
    def from_dict(cls, data: dict) -> "ImprovementSuggestion":
        return cls(
            suggestion=data.get("suggestion", ""),
            evidence=data.get("evidence", ""),
            priority=data.get("priority", "medium")
        )

    def to_dict(self) -> dict:
        return {
            "suggestion": self.suggestion,
            "evidence": self.evidence,
            "priority": self.priority
        }


@dataclass
class TypicalReview:
    original_text: str
    translated_text: str = ""
    rating: int = 0
    review_url: str = ""
    ai_insight: str = ""
    typical_reason: str = ""
    weight: float = 0  # 0-100, how representative the review is
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "TypicalReview":
        return cls(
            original_text=data.get("originalText", ""),
            translated_text=data.get("translatedText", ""),
            rating=data.get("rating", 0),
            review_url=data.get("reviewUrl", ""),
            ai_insight=data.get("aiInsight", ""),
            typical_reason=data.get("typicalReason", ""),
            weight=data.get("weight", 0),
            tags=list(data.get("tags", []))
        )

    def to_dict(self) -> dict:
        return {
            "originalText": self.original_text,
            "translatedText": self.translated_text,
            "rating": self.rating,
            "reviewUrl": self.review_url,
            "aiInsight": self.ai_insight,
            "typicalReason": self.typical_reason,
            "weight": self.weight,
            "tags": list(self.tags)
        }


@dataclass
class TimeSeriesPoint:
    date: str  # YYYY-MM-DD
    count: int


@dataclass
class AnalysisResult:
    """
    Complete review analysis report.

    Baseline fields are always computed locally; enrichment fields start
    at their placeholders and are filled by reconciliation.
    """
    product_info: ProductInfo
    star_distribution: Dict[int, int]
    star_distribution_percent: Dict[int, float]
    star_distribution_text: Dict[int, str]
    variant_analysis: Dict[str, VariantBreakdown]
    reviews_over_time: List[TimeSeriesPoint]
    sentiment_analysis: Optional[SentimentAnalysis] = None
    topic_clusters: List[TopicCluster] = field(default_factory=list)
    user_insights: UserInsights = field(default_factory=UserInsights)
    pros_cons: ProsCons = field(default_factory=ProsCons)
    return_reasons: List[ReturnReason] = field(default_factory=list)
    improvement_suggestions: List[ImprovementSuggestion] = field(default_factory=list)
    typical_reviews: List[TypicalReview] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisResult":
        """Create AnalysisResult from its JSON dict (e.g. a history record)."""
        sentiment = data.get("sentimentAnalysis")
        return cls(
            product_info=ProductInfo.from_dict(data["productInfo"]),
            star_distribution=_int_keys(data.get("starDistribution")),
            star_distribution_percent=_int_keys(data.get("starDistributionPercent")),
            star_distribution_text=_int_keys(data.get("starDistributionText")),
            variant_analysis={
                name: VariantBreakdown.from_dict(v)
                for name, v in data.get("variantAnalysis", {}).items()
            },
            reviews_over_time=[
                TimeSeriesPoint(date=p["date"], count=p["count"])
                for p in data.get("reviewsOverTime", [])
            ],
            sentiment_analysis=SentimentAnalysis.from_dict(sentiment) if sentiment else None,
            topic_clusters=[TopicCluster.from_dict(t) for t in data.get("topicClusters", [])],
            user_insights=UserInsights.from_dict(data.get("userInsights", {})),
            pros_cons=ProsCons.from_dict(data.get("prosCons", {})),
            return_reasons=[ReturnReason.from_dict(r) for r in data.get("returnReasons") or []],
            improvement_suggestions=[
                ImprovementSuggestion.from_dict(s)
                for s in data.get("improvementSuggestions") or []
            ],
            typical_reviews=[TypicalReview.from_dict(t) for t in data.get("typicalReviews") or []]
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "productInfo": self.product_info.to_dict(),
            "starDistribution": dict(self.star_distribution),
            "starDistributionPercent": dict(self.star_distribution_percent),
            "starDistributionText": dict(self.star_distribution_text),
            "sentimentAnalysis": self.sentiment_analysis.to_dict() if self.sentiment_analysis else None,
            "variantAnalysis": {
                name: v.to_dict() for name, v in self.variant_analysis.items()
            },
            "topicClusters": [t.to_dict() for t in self.topic_clusters],
            "userInsights": self.user_insights.to_dict(),
            "prosCons": self.pros_cons.to_dict(),
            "returnReasons": [r.to_dict() for r in self.return_reasons],
            "improvementSuggestions": [s.to_dict() for s in self.improvement_suggestions],
            "reviewsOverTime": [
                {"date": p.date, "count": p.count} for p in self.reviews_over_time
            ],
            "typicalReviews": [t.to_dict() for t in self.typical_reviews]
        }
