"""
JSON extraction from raw model output.

Models asked for JSON sometimes wrap it in markdown fences or prose.
"""

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_FENCE_OPEN = re.compile(r"```(?:json)?\s*")
_FENCE_CLOSE = re.compile(r"\s*```")


def _outer_object(text: str) -> Optional[str]:
    """Substring from the first "{" to the last "}", if any."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _try_load(candidate: Optional[str]) -> Any:
    if candidate is None:
        raise ValueError("no JSON object boundaries")
    return json.loads(candidate)


def extract_json_object(text: str) -> Any:
    """
    Parse the JSON document contained in ``text``.

    Strategies, in order:
    1. the whole text
    2. the first fenced code block
    3. everything between the first and last fence
    4. first "{" to last "}", raw and then with fence markers removed

    Raises:
        ValueError: If no strategy yields valid JSON
    """
    try:
        return json.loads(text)
    except ValueError:
        pass

    match = _CODE_BLOCK.search(text)
    if match:
        try:
            return _try_load(_outer_object(match.group(1).strip()))
        except ValueError as e:
            logger.debug(f"Code block did not contain valid JSON: {e}")

    first = text.find("```")
    last = text.rfind("```")
    if first != -1 and last > first + 3:
        inner = re.sub(r"^json\s*", "", text[first + 3:last].strip(), flags=re.IGNORECASE)
        try:
            return _try_load(_outer_object(inner))
        except ValueError as e:
            logger.debug(f"Fence span did not contain valid JSON: {e}")

    candidate = _outer_object(text)
    if candidate is not None:
        for attempt in (candidate, _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", candidate))):
            try:
                return json.loads(attempt)
            except ValueError as e:
                logger.debug(f"Brace span did not contain valid JSON: {e}")

    raise ValueError(f"No JSON object found in model output ({len(text)} chars)")
