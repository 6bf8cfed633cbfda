"""
Unit tests for Review Chat Agent.

Note: These tests use mocked LLM responses to avoid API costs.
"""

from unittest.mock import MagicMock, patch

import pytest

from src.agents.chat import ReviewChatAgent
from src.agents.statistics import compute_baseline
from src.models.review import ReviewRecord


@pytest.fixture
def records():
    return [
        ReviewRecord(asin="B0MAIN", title="Leaky lid", content="lid leaks", rating=1),
        ReviewRecord(asin="B0MAIN", title="Keeps cold", content="ice all day", rating=5),
    ]


def test_ask_builds_context_and_history(records):
    with patch("src.agents.chat.genai") as mock_genai:
        mock_chat = MagicMock()
        mock_chat.send_message.return_value = MagicMock(text="主要问题是漏水。")
        mock_model = MagicMock()
        mock_model.start_chat.return_value = mock_chat
        mock_genai.GenerativeModel.return_value = mock_model

        agent = ReviewChatAgent(api_key="test-key")
        answer = agent.ask(
            "lid problems?",
            records,
            compute_baseline(records),
            history=[
                {"role": "assistant", "content": "您好"},
                {"role": "user", "content": "hi"},
                {"role": "user", "content": ""},
            ]
        )

    assert answer == "主要问题是漏水。"
    system_prompt = mock_genai.GenerativeModel.call_args.kwargs["system_instruction"]
    assert "相关评论样本" in system_prompt
    assert "Leaky lid" in system_prompt
    assert mock_model.start_chat.call_args.kwargs["history"] == [
        {"role": "model", "parts": ["您好"]},
        {"role": "user", "parts": ["hi"]},
    ]
    mock_chat.send_message.assert_called_once_with("lid problems?")


def test_ask_without_analysis_uses_minimal_context(records):
    with patch("src.agents.chat.genai") as mock_genai:
        mock_model = MagicMock()
        mock_model.start_chat.return_value.send_message.return_value = MagicMock(text="ok")
        mock_genai.GenerativeModel.return_value = mock_model

        ReviewChatAgent(api_key="test-key").ask("cold", records)

    system_prompt = mock_genai.GenerativeModel.call_args.kwargs["system_instruction"]
    assert "Total Reviews: 2" in system_prompt
    assert "相关评论样本" not in system_prompt


def test_ask_rejects_empty_question(records):
    with patch("src.agents.chat.genai"):
        agent = ReviewChatAgent(api_key="test-key")
        with pytest.raises(ValueError):
            agent.ask("   ", records)


def test_ask_propagates_api_errors(records):
    with patch("src.agents.chat.genai") as mock_genai:
        mock_genai.GenerativeModel.return_value.start_chat.return_value.send_message.side_effect = (
            RuntimeError("network down")
        )
        agent = ReviewChatAgent(api_key="test-key")
        with pytest.raises(RuntimeError):
            agent.ask("why?", records)
