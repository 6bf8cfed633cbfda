"""
Context Assembler.

Builds the bounded plain-text context that accompanies a chat question.
Before an analysis exists only a keyword-filtered review sample is sent;
afterwards the computed report is rendered first and the review sample
is smaller.
"""

import logging
from typing import List, Optional, Sequence

from src.models.analysis import AnalysisResult
from src.models.review import ReviewRecord
import config.settings as settings

logger = logging.getLogger(__name__)


SECTION_STATS = "=== 基础统计数据 ==="
SECTION_ANALYSIS = "=== 完整分析结果 ==="
SECTION_SAMPLE = "相关评论样本"

PRIORITY_TAGS = {"high": "高", "medium": "中", "low": "低"}


def _fmt(value) -> str:
    """57.0 -> "57", 12.5 -> "12.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _keywords(query: str, lower: bool = False) -> List[str]:
    text = query.lower() if lower else query
    return [token for token in text.split() if len(token) > 1]


def build_minimal_context(
    query: str,
    records: Sequence[ReviewRecord],
    sample_size: int = settings.MINIMAL_CONTEXT_SAMPLE
) -> str:
    """
    Keyword-filtered review sample for the pre-analysis chat path.

    Matching is a case-sensitive substring test on title and body; when
    nothing matches the unfiltered set is used.
    """
    keywords = _keywords(query)
    relevant = list(records)
    if keywords:
        filtered = [
            r for r in records
            if any(k in r.content or k in r.title for k in keywords)
        ]
        if filtered:
            relevant = filtered

    sample = "\n".join(
        f"- [{r.rating}星] {r.title}: {r.content} (型号: {r.variant})"
        for r in relevant[:sample_size]
    )
    return f"Total Reviews: {len(records)}\nSample Reviews:\n{sample}"


def _stats_block(analysis: AnalysisResult) -> List[str]:
    info = analysis.product_info
    lines = [
        SECTION_STATS,
        f"总评论数: {info.total_reviews}",
        f"主 ASIN: {info.main_asin}",
        f"产品标题: {info.title}",
    ]
    if info.category:
        lines.append(f"产品分类: {info.category}")

    lines.append("星级分布:")
    for rank in (5, 4, 3, 2, 1):
        count = analysis.star_distribution.get(rank, 0)
        percent = analysis.star_distribution_percent.get(rank, 0)
        bar = analysis.star_distribution_text.get(rank, "")
        lines.append(f"  {rank}星: {_fmt(count)} 条 ({_fmt(percent)}%) {bar}".rstrip())

    if info.variant_stats_by_asin:
        lines.append("按 ASIN 统计:")
        lines.extend(f"  {asin}: {_fmt(n)} 条" for asin, n in info.variant_stats_by_asin.items())
    if info.variant_stats_by_model:
        lines.append("按型号统计:")
        lines.extend(f"  {model}: {_fmt(n)} 条" for model, n in info.variant_stats_by_model.items())
    return lines


def _analysis_block(analysis: AnalysisResult) -> List[str]:
    lines = [SECTION_ANALYSIS]

    sentiment = analysis.sentiment_analysis
    if sentiment:
        lines.append(
            f"情感分析: 正面 {_fmt(sentiment.positive)}%, "
            f"中性 {_fmt(sentiment.neutral)}%, 负面 {_fmt(sentiment.negative)}%"
        )
        if sentiment.summary:
            lines.append(f"情感总结: {sentiment.summary}")

    if analysis.topic_clusters:
        lines.append("主题聚类:")
        for i, topic in enumerate(analysis.topic_clusters, 1):
            lines.append(f"  {i}. {topic.name} ({_fmt(topic.percentage)}%): {topic.summary}")
            for example in topic.examples[:2]:
                lines.append(f"     - 原文: {example.en} / 译文: {example.cn}")

    insights = analysis.user_insights
    for label, items in (
        ("购买动机", insights.purchase_motivations),
        ("未满足需求", insights.unmet_needs),
        ("用户画像", insights.personas),
    ):
        if items:
            lines.append(f"{label}:")
            lines.extend(f"  {i}. {item}" for i, item in enumerate(items, 1))

    for label, items in (("优点", analysis.pros_cons.pros), ("缺点", analysis.pros_cons.cons)):
        if items:
            lines.append(f"{label}:")
            for item in items:
                lines.append(f"  - {item.summary} (频率 {_fmt(item.frequency)}%): \"{item.original_text}\"")

    if analysis.return_reasons:
        lines.append("退货原因:")
        for reason in analysis.return_reasons:
            lines.append(f"  - {reason.reason} (频率 {_fmt(reason.frequency)}%)")
            lines.extend(f"    证据: \"{quote}\"" for quote in reason.evidence[:2])

    if analysis.improvement_suggestions:
        lines.append("改进建议:")
        for s in analysis.improvement_suggestions:
            tag = PRIORITY_TAGS.get(s.priority, s.priority)
            lines.append(f"  - [{tag}优先级] {s.suggestion} (证据: {s.evidence})")

    if analysis.typical_reviews:
        lines.append("典型评论:")
        for i, review in enumerate(analysis.typical_reviews[:settings.CONTEXT_TYPICAL_REVIEWS], 1):
            lines.append(f"  {i}. [{review.rating}星] {review.original_text}")
            lines.append(f"     翻译: {review.translated_text}")
            lines.append(f"     AI 洞察: {review.ai_insight}")

    if analysis.reviews_over_time:
        points = analysis.reviews_over_time[-settings.CONTEXT_TIME_SERIES_POINTS:]
        lines.append(f"评论时间趋势 (最近 {len(points)} 个数据点):")
        lines.extend(f"  {p.date}: {p.count} 条" for p in points)

    return lines


def _sample_block(
    query: str,
    records: Sequence[ReviewRecord],
    sample_size: int
) -> List[str]:
    keywords = _keywords(query, lower=True)
    relevant = list(records)
    if keywords:
        filtered = [
            r for r in records
            if any(
                k in r.title.lower() or k in r.content.lower() or k in r.variant.lower()
                for k in keywords
            )
        ]
        if filtered:
            relevant = filtered

    sample = relevant[:sample_size]
    limit = settings.CONTEXT_BODY_CHARS
    lines = [f"=== {SECTION_SAMPLE} (显示 {len(sample)}/{len(records)} 条) ==="]
    for r in sample:
        body = r.content[:limit]
        lines.append(f"- [{r.rating}星] {r.title}: {body} (型号: {r.variant}, ASIN: {r.asin})")
    return lines


def build_full_context(
    query: str,
    records: Sequence[ReviewRecord],
    analysis: AnalysisResult,
    sample_size: int = settings.FULL_CONTEXT_SAMPLE
) -> str:
    """Computed report followed by a relevance-filtered review sample."""
    lines = _stats_block(analysis)
    lines.append("")
    lines.extend(_analysis_block(analysis))
    lines.append("")
    lines.extend(_sample_block(query, records, sample_size))
    return "\n".join(lines)


def build_context(
    query: str,
    records: Sequence[ReviewRecord],
    analysis: Optional[AnalysisResult] = None
) -> str:
    """
    Assemble the chat context for a question.

    Args:
        query: The user's question
        records: Full review set of the report
        analysis: Computed report, if one exists yet

    Returns:
        Newline-delimited plain text for inclusion in the chat prompt
    """
    if analysis is None:
        context = build_minimal_context(query, records)
        mode = "minimal"
    else:
        context = build_full_context(query, records, analysis)
        mode = "full"
    logger.debug(f"Built {mode} chat context ({len(context)} chars) for {len(records)} reviews")
    return context
