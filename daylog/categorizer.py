"""
Categorizer - Remote LLM classification with keyword fallback, and coaching advice.
"""

import json
import logging
import re
from typing import Optional

from daylog.llm import LLMClient, LLMError
from daylog.mapper import CategoryMapper
from daylog.models import (
    AdviceGenerationFailure,
    Category,
    ClassificationTransportFailure,
    Entry,
)

logger = logging.getLogger(__name__)

MODE_AI = "ai"
MODE_KEYWORD = "keyword"

CODE_FENCE_PATTERN = re.compile(r"```json|```")


class ClassificationResult:
    """Outcome of a categorisation attempt."""

    def __init__(self, mode: str, error: Optional[str] = None):
        self.mode = mode
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def used_fallback(self) -> bool:
        return self.mode == MODE_KEYWORD

    def __repr__(self) -> str:
        return f"ClassificationResult(mode={self.mode!r}, error={self.error!r})"


def build_categorize_prompt(entries: list[Entry]) -> str:
    """
    Generate the classification prompt.

    Args:
        entries: Entries to classify, in order

    Returns:
        Prompt asking for a JSON array of category labels
    """
    items = "\n".join(f"[{entry.start}] {entry.content}" for entry in entries)

    return f"""請將以下日誌條目分類到這些類別之一：
- {Category.ROUTINE.value}：日常作息（用餐、通勤、早晨例行事務）
- {Category.WORK.value}：工作相關任務、會議、簡報
- {Category.SOCIAL.value}：與朋友的社交活動
- {Category.DEVELOPMENT.value}：學習、閱讀、個人成長
- {Category.RESTING.value}：睡眠、午睡、休息（00:00-07:00 通常是睡眠）
- {Category.FAMILY.value}：家庭時間、與家人的活動

重要規則：
1. 00:00-07:00 之間的條目通常應該是「{Category.RESTING.value}」
2. 任何午睡或睡眠都應該是「{Category.RESTING.value}」
3. 只返回 JSON 陣列，包含與輸入相同順序的類別字串
4. 不要解釋，只要 JSON 陣列

日誌條目：
{items}"""


def build_advice_prompt(entries: list[Entry]) -> str:
    """Generate the energy-coach prompt from the full, categorised day."""
    context = "\n".join(
        f"{entry.start}-{entry.end} [{entry.category.value}] {entry.content} (沈浸度:{entry.immersion})"
        for entry in entries
    )

    return f"""Act as an Energy Management Coach. Analyze this daily log and provide insights.

Your analysis should include:
1. **Energy Flow Observation**: Identify patterns in energy peaks and dips throughout the day
2. **Key Insights**: Note what activities led to high immersion (focus) levels
3. **Tomorrow's Strategy**: Provide 3 actionable lessons learned for improving tomorrow

Output in Traditional Chinese (繁體中文).
Use markdown formatting for better readability.

Daily Log:
{context}"""


def parse_categories_response(response: str, expected: int) -> list[Category]:
    """
    Parse and validate the classifier's reply.

    Args:
        response: Raw model text, possibly wrapped in a code fence
        expected: Number of entries that were sent

    Returns:
        One Category per entry, in order

    Raises:
        ClassificationTransportFailure: if the reply is not a JSON array of
            exactly `expected` known category labels
    """
    if not isinstance(response, str):
        raise ClassificationTransportFailure(
            f"LLM response is not text: {type(response).__name__}"
        )

    cleaned = CODE_FENCE_PATTERN.sub("", response).strip()

    try:
        labels = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ClassificationTransportFailure(f"Failed to parse LLM response as JSON: {e}") from e

    if not isinstance(labels, list):
        raise ClassificationTransportFailure("LLM response is not a JSON array")

    if len(labels) != expected:
        raise ClassificationTransportFailure(
            f"Expected {expected} categories, got {len(labels)}"
        )

    try:
        return [Category.parse(label) for label in labels]
    except ValueError as e:
        raise ClassificationTransportFailure(str(e)) from e


def categorize_remote(entries: list[Entry], client: LLMClient) -> None:
    """
    Classify entries with the remote model, mutating categories in place.

    Nothing is applied unless the whole response validates.

    Raises:
        ClassificationTransportFailure: on any transport or shape error
    """
    if not entries:
        return

    prompt = build_categorize_prompt(entries)
    logger.debug(f"Generated prompt:\n{prompt}")

    try:
        response = client.generate(prompt)
    except LLMError as e:
        raise ClassificationTransportFailure(str(e)) from e

    logger.debug(f"LLM response:\n{response}")
    categories = parse_categories_response(response, len(entries))

    for entry, category in zip(entries, categories):
        entry.category = category


def attempt_remote(entries: list[Entry], client: LLMClient) -> ClassificationResult:
    """Try remote classification and report the outcome instead of raising."""
    try:
        categorize_remote(entries, client)
    except ClassificationTransportFailure as e:
        logger.warning(f"AI categorization failed: {e}")
        return ClassificationResult(MODE_AI, error=str(e))
    return ClassificationResult(MODE_AI)


def categorize_entries(
    entries: list[Entry],
    client: Optional[LLMClient] = None,
    mapper: Optional[CategoryMapper] = None,
) -> ClassificationResult:
    """
    Categorise entries, falling back to keywords when the remote call fails.

    Args:
        entries: User entries to categorise (in place)
        client: Remote client, or None for keyword mode
        mapper: Keyword mapper used for fallback

    Returns:
        ClassificationResult; mode is "keyword" whenever the fallback ran, and
        error carries the remote failure if there was one
    """
    mapper = mapper or CategoryMapper()

    if client is not None and entries:
        result = attempt_remote(entries, client)
        if result.ok:
            return result
        logger.info("Falling back to keyword categorization")
        mapper.categorize(entries)
        return ClassificationResult(MODE_KEYWORD, error=result.error)

    mapper.categorize(entries)
    return ClassificationResult(MODE_KEYWORD)


def generate_advice(entries: list[Entry], client: LLMClient) -> str:
    """
    Ask the model for coaching advice on the day.

    Returns:
        Markdown text

    Raises:
        AdviceGenerationFailure: if the call fails or returns nothing
    """
    prompt = build_advice_prompt(entries)
    logger.debug(f"Generated advice prompt:\n{prompt}")

    try:
        advice = client.generate(prompt)
    except LLMError as e:
        logger.error(f"AI advice generation failed: {e}")
        raise AdviceGenerationFailure(str(e)) from e

    if not isinstance(advice, str) or not advice.strip():
        raise AdviceGenerationFailure("Empty advice response")

    return advice
