"""
Enrichment Agent.

Asks an LLM for the semantic parts of the report (sentiment, topics,
personas, pros/cons, return reasons, suggestions, typical reviews).
The response is returned as an untyped dict for reconciliation.
"""

import json
import logging
from typing import List, Optional, Sequence

import google.generativeai as genai

from src.models.review import ReviewRecord
from src.utils.json_extract import extract_json_object

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """你是一个专业的 Amazon 评论分析专家。请严格按照用户要求生成 JSON 格式的分析结果。

规则:
- 所有结论必须来自提供的评论数据, 不要编造数据
- 缺失的数据保持缺失, 不要猜测
- 百分比使用 0-100 的数字
- 只输出合法的 JSON, 不要输出其他文字"""


RESPONSE_SCHEMA = """{
  "productInfo": {
    "title": "产品名称 (不要使用评论标题)",
    "category": "产品分类",
    "variantStatsByAsin": {"ASIN": 数量},
    "variantStatsByModel": {"型号": 数量}
  },
  "sentimentAnalysis": {
    "positive": 百分比, "neutral": 百分比, "negative": 百分比,
    "summary": "简短中文分析"
  },
  "topicClusters": [
    {"name": "主题", "percentage": 百分比, "summary": "总结",
     "examples": [{"en": "英文原文", "cn": "中文翻译"}]}
  ],
  "userInsights": {
    "purchaseMotivations": ["购买动机"],
    "unmetNeeds": ["未满足需求"],
    "personas": ["用户画像"]
  },
  "prosCons": {
    "pros": [{"summary": "优点", "originalText": "原文引用", "frequency": 百分比}],
    "cons": [{"summary": "缺点", "originalText": "原文引用", "frequency": 百分比}]
  },
  "returnReasons": [
    {"reason": "退货原因", "evidence": ["评论证据"], "frequency": 百分比}
  ],
  "improvementSuggestions": [
    {"suggestion": "改进建议", "evidence": "文本证据", "priority": "high|medium|low"}
  ],
  "typicalReviews": [
    {"originalText": "英文原文", "translatedText": "中文翻译", "rating": 星级,
     "reviewUrl": "评论链接", "aiInsight": "一句话洞察", "typicalReason": "为什么典型",
     "weight": 0-100, "tags": ["标签"]}
  ]
}"""


def _construct_user_prompt(reviews_json: str) -> str:
    """Construct analysis prompt from serialized reviews."""
    return f"""请分析以下 Amazon 商品评论数据, 并按照指定的 JSON 结构输出分析结果。

评论数据:
{reviews_json}

输出 JSON 结构:
{RESPONSE_SCHEMA}"""


def serialize_reviews(records: Sequence[ReviewRecord], limit: int) -> str:
    """The review fields the analysis prompt needs, capped at ``limit`` rows."""
    rows: List[dict] = [
        {
            "asin": r.asin,
            "title": r.title,
            "content": r.content,
            "rating": r.rating,
            "variant": r.variant,
            "date": r.date,
            "reviewUrl": r.review_url
        }
        for r in records[:limit]
    ]
    return json.dumps(rows, ensure_ascii=False, indent=2)


class EnrichmentAgent:
    """
    Produces the LLM half of the analysis report.

    Uses an LLM (Gemini) to:
    1. Classify overall sentiment and cluster topics
    2. Extract user insights, pros/cons and return reasons
    3. Propose improvements and pick typical reviews
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-1.5-flash",
        temperature: float = 0.3,
        max_retries: int = 2,
        max_reviews: int = 500,
        max_output_tokens: int = 8192
    ):
        """
        Initialize enrichment agent.

        Args:
            api_key: Gemini API key
            model_name: Gemini model to use
            temperature: LLM temperature
            max_retries: Number of attempts before giving up
            max_reviews: Maximum reviews included in the prompt
            max_output_tokens: Response length limit
        """
        self.model_name = model_name
        self.temperature = temperature
        self.max_retries = max_retries
        self.max_reviews = max_reviews

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(
            model_name=model_name,
            generation_config={
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
                "response_mime_type": "application/json"
            },
            system_instruction=SYSTEM_PROMPT
        )

        logger.info(f"Initialized EnrichmentAgent with model={model_name}, temp={temperature}")

    def enrich(self, records: Sequence[ReviewRecord]) -> Optional[dict]:
        """
        Request the enrichment payload for a review set.

        Args:
            records: Parsed reviews

        Returns:
            Parsed JSON object, or None if every attempt failed
        """
        if not records:
            logger.warning("No reviews to enrich")
            return None

        if len(records) > self.max_reviews:
            logger.info(f"Sending first {self.max_reviews} of {len(records)} reviews for enrichment")
        prompt = _construct_user_prompt(serialize_reviews(records, self.max_reviews))

        for attempt in range(self.max_retries):
            try:
                response = self.model.generate_content(prompt)
                payload = extract_json_object(response.text)
                if not isinstance(payload, dict):
                    raise ValueError(f"Expected JSON object, got {type(payload).__name__}")
                logger.info(f"Received enrichment payload with keys {sorted(payload)}")
                return payload

            except ValueError as e:
                logger.error(f"Failed to parse enrichment response (attempt {attempt + 1}): {e}")

            except Exception as e:
                logger.error(f"LLM API error during enrichment (attempt {attempt + 1}): {e}")

        logger.warning(f"Enrichment unavailable after {self.max_retries} attempts")
        return None
