"""Tests for text and transcript summarization"""

import pytest

from app.errors import EmptyInput, InvalidLength
from app.services.summarization import (
    SummarizationService,
    fallback_sentiment,
    fallback_summary,
    fallback_topics,
)
from conftest import FakeLLM


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Great service, I love it", "positive"),
        ("Terrible, I hate waiting", "negative"),
        ("Good start but a bad ending", "neutral"),
        ("The goodness of badminton", "neutral"),
        ("Nothing to report", "neutral"),
    ],
)
def test_fallback_sentiment(text, expected):
    assert fallback_sentiment(text) == expected


def test_fallback_topics_in_vocabulary_order():
    text = "I want a refund. Customer service never answered my billing question."

    assert fallback_topics(text) == ["customer service", "billing", "refund"]
    assert fallback_topics("The deliveryman was late") == []


def test_fallback_summary_styles():
    text = "First point here. Second point follows. Third point ends it."

    assert fallback_summary(text, 150, "paragraph") == text
    assert fallback_summary(text, 150, "bullet") == (
        "• First point here.\n• Second point follows.\n• Third point ends it."
    )
    assert fallback_summary(text, 150, "key_points") == (
        "Key Points:\n1. First point here.\n2. Second point follows.\n3. Third point ends it."
    )


def test_fallback_summary_truncates_words():
    text = "one two three four five six"

    assert fallback_summary(text, 15, "paragraph") == "one two three..."
    assert fallback_summary(text, 3, "paragraph") == "one..."


@pytest.mark.asyncio
async def test_preconditions_checked_before_backend():
    llm = FakeLLM()
    service = SummarizationService(llm=llm)

    with pytest.raises(EmptyInput):
        await service.summarize("", max_length=-1)
    with pytest.raises(InvalidLength):
        await service.summarize("Some text", max_length=0)

    assert llm.requests == []


@pytest.mark.asyncio
async def test_llm_path():
    llm = FakeLLM(summary="Refund requested.", sentiment="Negative.", topics="1. refund\n2. billing")
    service = SummarizationService(llm=llm)

    summary = await service.summarize("I was charged twice and want my money back", max_length=100)

    assert summary.summary == "Refund requested."
    assert summary.sentiment == "negative"
    assert summary.key_topics == ["refund", "billing"]
    assert summary.confidence == 1.0
    assert summary.metadata.provider == "llm"
    assert summary.metadata.model == "fake-1"
    assert llm.requests[0]["temperature"] == 0.2
    assert llm.requests[0]["max_tokens"] == 100 // 4 + 32


@pytest.mark.asyncio
async def test_stages_fall_back_independently():
    llm = FakeLLM(summary="Short summary.", sentiment="ecstatic", topics="")
    service = SummarizationService(llm=llm)

    summary = await service.summarize("The customer was happy with the delivery.")

    assert summary.summary == "Short summary."
    assert summary.sentiment == "positive"
    assert summary.key_topics == ["delivery"]
    assert summary.confidence == pytest.approx(0.33)


@pytest.mark.asyncio
async def test_backend_failure_uses_fallback():
    service = SummarizationService(llm=FakeLLM(fail=True))

    summary = await service.summarize("Awful experience, I am angry", style="paragraph")

    assert summary.summary == "Awful experience, I am angry"
    assert summary.sentiment == "negative"
    assert summary.confidence is None
    assert summary.metadata.provider == "fallback"


@pytest.mark.asyncio
async def test_call_transcript_instruction():
    llm = FakeLLM()
    service = SummarizationService(llm=llm)

    summary = await service.summarize_call_transcript("Caller wants a refund", call_type="support")

    assert llm.requests[0]["system_prompt"].startswith("Summarize this support call")
    assert llm.requests[0]["max_tokens"] == 200 // 4 + 32
    assert summary.metadata.call_type == "support"
    assert summary.metadata.style == "key_points"
