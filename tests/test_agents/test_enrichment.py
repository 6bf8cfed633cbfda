"""
Unit tests for Enrichment Agent.

Note: These tests use mocked LLM responses to avoid API costs.
"""

import json
from unittest.mock import MagicMock, patch

from src.agents.enrichment import EnrichmentAgent, serialize_reviews
from src.models.review import ReviewRecord


def sample_reviews(n=3):
    return [
        ReviewRecord(asin="B0MAIN", title=f"Title {i}", content=f"Body {i}", rating=5,
                     variant="Blue", date="2024-01-01", author="secret author")
        for i in range(n)
    ]


def make_agent(responses, max_retries=2, max_reviews=500):
    """Agent whose Gemini model returns ``responses`` in order."""
    with patch("src.agents.enrichment.genai") as mock_genai:
        mock_model = MagicMock()
        mock_model.generate_content.side_effect = [
            r if isinstance(r, Exception) else MagicMock(text=r) for r in responses
        ]
        mock_genai.GenerativeModel.return_value = mock_model
        agent = EnrichmentAgent(api_key="test-key", max_retries=max_retries, max_reviews=max_reviews)
    return agent, mock_model


def test_enrich_returns_payload():
    payload = {"sentimentAnalysis": {"positive": 80, "neutral": 10, "negative": 10}}
    agent, model = make_agent([json.dumps(payload)])

    assert agent.enrich(sample_reviews()) == payload
    assert model.generate_content.call_count == 1


def test_enrich_extracts_fenced_json():
    text = "Here is the analysis:\n```json\n{\"topicClusters\": []}\n```"
    agent, _ = make_agent([text])

    assert agent.enrich(sample_reviews()) == {"topicClusters": []}


def test_enrich_retries_then_succeeds():
    agent, model = make_agent(["not json at all", json.dumps({"prosCons": {}})])

    assert agent.enrich(sample_reviews()) == {"prosCons": {}}
    assert model.generate_content.call_count == 2


def test_enrich_returns_none_after_failures():
    """Test that API errors and bad JSON end in None, never an exception."""
    agent, model = make_agent([RuntimeError("quota exceeded"), "[1, 2, 3]"])

    assert agent.enrich(sample_reviews()) is None
    assert model.generate_content.call_count == 2


def test_enrich_empty_records_skips_call():
    agent, model = make_agent([])

    assert agent.enrich([]) is None
    model.generate_content.assert_not_called()


def test_prompt_caps_reviews():
    agent, model = make_agent([json.dumps({})], max_reviews=2)
    agent.enrich(sample_reviews(5))

    prompt = model.generate_content.call_args[0][0]
    assert "Body 1" in prompt
    assert "Body 2" not in prompt


def test_serialize_reviews_fields():
    rows = json.loads(serialize_reviews(sample_reviews(1), limit=10))

    assert rows == [{
        "asin": "B0MAIN", "title": "Title 0", "content": "Body 0", "rating": 5,
        "variant": "Blue", "date": "2024-01-01", "reviewUrl": ""
    }]
