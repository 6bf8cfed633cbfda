"""
Review Chat Agent.

Answers free-form questions about a review set, grounded in the context
built by the context assembler.
"""

import logging
from typing import Dict, List, Optional, Sequence

import google.generativeai as genai

from src.agents.context import build_context
from src.models.analysis import AnalysisResult
from src.models.review import ReviewRecord

logger = logging.getLogger(__name__)


def _construct_system_prompt(context: str) -> str:
    """System instruction embedding the review context."""
    return f"""You are an intelligent assistant analyzing Amazon product reviews.
User has provided the following context from the reviews:
{context}

Please answer the user's question based on this context. If the answer is not in the context, use your general knowledge but mention that it's not from the specific data.
Keep answers concise and helpful. Use Chinese language."""


def _to_gemini_history(history: Sequence[Dict[str, str]]) -> List[dict]:
    """{"role": "user"|"assistant", "content"} turns -> Gemini chat history."""
    turns = []
    for message in history:
        content = message.get("content", "")
        if not content:
            continue
        role = "model" if message.get("role") == "assistant" else "user"
        turns.append({"role": role, "parts": [content]})
    return turns


class ReviewChatAgent:
    """
    Question answering over a review set and its analysis.

    The context is rebuilt for every question so that the review sample
    follows the question's keywords.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-1.5-flash",
        temperature: float = 0.7
    ):
        """
        Initialize chat agent.

        Args:
            api_key: Gemini API key
            model_name: Gemini model to use
            temperature: LLM temperature
        """
        self.model_name = model_name
        self.temperature = temperature

        genai.configure(api_key=api_key)

        logger.info(f"Initialized ReviewChatAgent with model={model_name}, temp={temperature}")

    def ask(
        self,
        question: str,
        records: Sequence[ReviewRecord],
        analysis: Optional[AnalysisResult] = None,
        history: Optional[Sequence[Dict[str, str]]] = None
    ) -> str:
        """
        Answer one question.

        Args:
            question: The user's question
            records: Review set of the report
            analysis: Computed report, if available
            history: Earlier turns of the conversation

        Returns:
            Answer text

        Raises:
            ValueError: If the question is empty
        """
        if not question or not question.strip():
            raise ValueError("Question must not be empty")

        context = build_context(question, records, analysis)
        model = genai.GenerativeModel(
            model_name=self.model_name,
            generation_config={"temperature": self.temperature},
            system_instruction=_construct_system_prompt(context)
        )

        chat = model.start_chat(history=_to_gemini_history(history or []))
        try:
            response = chat.send_message(question)
        except Exception as e:
            logger.error(f"LLM API error during chat: {e}")
            raise

        logger.debug(f"Chat answered with {len(response.text)} chars")
        return response.text
