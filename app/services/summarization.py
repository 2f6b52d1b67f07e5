"""Text and call-transcript summarization"""

import re
from typing import List, Optional, Protocol

import structlog

from app.errors import EmptyInput, InvalidLength
from app.schemas.llm import LLMGenerateResponse, LLMMessage
from app.schemas.summary import Sentiment, Summary, SummaryMetadata, SummaryStyle

logger = structlog.get_logger()


POSITIVE_WORDS = ("good", "great", "excellent", "happy", "satisfied", "love", "amazing")
NEGATIVE_WORDS = ("bad", "terrible", "awful", "angry", "frustrated", "hate", "disappointed")
TOPIC_VOCABULARY = (
    "customer service",
    "order status",
    "billing",
    "technical support",
    "product inquiry",
    "complaint",
    "feedback",
    "refund",
    "delivery",
)
SENTIMENTS = ("positive", "negative", "neutral")

STYLE_INSTRUCTIONS = {
    "bullet": "Summarize the text as a short list of bullet points, one per line, each starting with '• '.",
    "paragraph": "Summarize the text as a single concise paragraph.",
    "key_points": "Summarize the text as a numbered list of key points under the heading 'Key Points:'.",
}

CALL_TYPE_INSTRUCTIONS = {
    "support": "Summarize this support call, focusing on the issue, resolution, and customer satisfaction.",
    "sales": "Summarize this sales call, highlighting the product discussed, customer interest level, and next steps.",
    "general": "Summarize this call conversation, noting key points and action items.",
}

SUMMARY_TEMPERATURE = 0.2
MAX_TOPICS = 5


class TextGenerator(Protocol):
    async def generate(
        self,
        system_prompt: str,
        messages: List[LLMMessage],
        temperature: float = 0.2,
        max_tokens: int = 256,
    ) -> LLMGenerateResponse:
        ...


def _words(text: str) -> set:
    return set(re.findall(r"[a-z']+", text.lower()))


def fallback_sentiment(text: str) -> Sentiment:
    """Strict majority of positive vs negative keywords; ties are neutral"""
    words = _words(text)
    positive = sum(1 for word in POSITIVE_WORDS if word in words)
    negative = sum(1 for word in NEGATIVE_WORDS if word in words)

    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def fallback_topics(text: str) -> List[str]:
    """Vocabulary phrases that appear in the text, in vocabulary order"""
    lower_text = text.lower()
    return [
        topic
        for topic in TOPIC_VOCABULARY
        if re.search(rf"\b{re.escape(topic)}\b", lower_text)
    ]


def _sentences(text: str) -> List[str]:
    return [s for s in re.split(r"(?<=[.!?])\s+", text.strip()) if s]


def fallback_summary(text: str, max_length: int, style: SummaryStyle) -> str:
    """Leading words of the text (about five characters per word) laid out per style"""
    words = text.split()
    keep = max(1, max_length // 5)
    truncated = " ".join(words[:keep])
    if len(words) > keep:
        truncated += "..."

    if style == "paragraph":
        return truncated

    sentences = _sentences(truncated)
    if style == "bullet":
        return "\n".join(f"• {sentence}" for sentence in sentences)

    lines = [f"{i}. {sentence}" for i, sentence in enumerate(sentences, start=1)]
    return "Key Points:\n" + "\n".join(lines)


def _parse_sentiment(content: Optional[str]) -> Sentiment:
    word = (content or "").strip().lower().strip(".!\"' ")
    if word not in SENTIMENTS:
        raise ValueError(f"Unexpected sentiment label: {content!r}")
    return word


def _parse_topics(content: Optional[str]) -> List[str]:
    topics = []
    for item in re.split(r"[,\n]", content or ""):
        topic = re.sub(r"^\s*(?:[-•*]|\d+[.)])\s*", "", item).strip(" .")
        if topic and topic.lower() not in (t.lower() for t in topics):
            topics.append(topic)
    if not topics:
        raise ValueError("No topics in LLM response")
    return topics[:MAX_TOPICS]


class SummarizationService:
    """
    Summarizes text with a generative-text backend when one is configured.

    Each stage (summary, sentiment, topics) degrades independently to the
    keyword-based fallback when the backend is missing or fails.
    """

    def __init__(self, llm: Optional[TextGenerator] = None):
        self.llm = llm

    async def summarize(
        self,
        text: str,
        max_length: int = 150,
        style: SummaryStyle = "key_points",
        language: str = "en-US",
    ) -> Summary:
        return await self._summarize(text, max_length, style, language)

    async def summarize_call_transcript(self, transcript: str, call_type: str = "general") -> Summary:
        """Summarize a call transcript with a call-type specific instruction"""
        instruction = CALL_TYPE_INSTRUCTIONS.get(call_type, CALL_TYPE_INSTRUCTIONS["general"])
        return await self._summarize(
            transcript,
            max_length=200,
            style="key_points",
            language="en-US",
            instruction=instruction,
            call_type=call_type,
        )

    async def _summarize(
        self,
        text: str,
        max_length: int,
        style: SummaryStyle,
        language: str,
        instruction: Optional[str] = None,
        call_type: Optional[str] = None,
    ) -> Summary:
        if not text or not text.strip():
            raise EmptyInput("Text to summarize must not be empty")
        if max_length <= 0:
            raise InvalidLength(f"maxLength must be greater than 0, got {max_length}")

        llm_stages = 0
        model = None

        summary_text = None
        if self.llm is not None:
            summary_text, model = await self._llm_summary(text, max_length, style, language, instruction)
        if summary_text:
            llm_stages += 1
        else:
            summary_text = fallback_summary(text, max_length, style)

        sentiment = None
        if self.llm is not None:
            sentiment = await self._llm_stage("sentiment", self._llm_sentiment, text)
        if sentiment:
            llm_stages += 1
        else:
            sentiment = fallback_sentiment(text)

        topics = None
        if self.llm is not None:
            topics = await self._llm_stage("topics", self._llm_topics, text)
        if topics:
            llm_stages += 1
        else:
            topics = fallback_topics(text)

        logger.info(
            "Text summarized",
            style=style,
            original_length=len(text),
            summary_length=len(summary_text),
            llm_stages=llm_stages,
        )

        return Summary(
            summary=summary_text,
            original_length=len(text),
            summary_length=len(summary_text),
            key_topics=topics,
            sentiment=sentiment,
            # share of the three stages answered by the LLM
            confidence=round(llm_stages / 3, 2) if llm_stages else None,
            metadata=SummaryMetadata(
                provider="llm" if llm_stages else "fallback",
                model=model,
                style=style,
                language=language,
                call_type=call_type,
            ),
        )

    async def _llm_stage(self, stage: str, func, text: str):
        try:
            return await func(text)
        except Exception as e:
            logger.warning("LLM stage failed, using fallback", stage=stage, error=str(e))
            return None

    async def _llm_summary(
        self,
        text: str,
        max_length: int,
        style: SummaryStyle,
        language: str,
        instruction: Optional[str],
    ):
        system_prompt = " ".join(
            part
            for part in (
                instruction,
                STYLE_INSTRUCTIONS[style],
                f"Keep it under {max_length} characters.",
                f"Write in the language with tag {language}.",
            )
            if part
        )
        try:
            response = await self.llm.generate(
                system_prompt=system_prompt,
                messages=[LLMMessage(role="user", content=text)],
                temperature=SUMMARY_TEMPERATURE,
                # roughly four characters per token, plus room for list markup
                max_tokens=max_length // 4 + 32,
            )
        except Exception as e:
            logger.warning("LLM stage failed, using fallback", stage="summary", error=str(e))
            return None, None

        content = (response.content or "").strip()
        return (content or None), response.model

    async def _llm_sentiment(self, text: str) -> Sentiment:
        response = await self.llm.generate(
            system_prompt=(
                "Classify the overall sentiment of the text. "
                "Reply with exactly one word: positive, negative, or neutral."
            ),
            messages=[LLMMessage(role="user", content=text)],
            temperature=0.0,
            max_tokens=5,
        )
        return _parse_sentiment(response.content)

    async def _llm_topics(self, text: str) -> List[str]:
        response = await self.llm.generate(
            system_prompt=(
                f"List up to {MAX_TOPICS} key topics discussed in the text as a "
                "comma-separated list of short lowercase phrases. No numbering, no other text."
            ),
            messages=[LLMMessage(role="user", content=text)],
            temperature=0.0,
            max_tokens=60,
        )
        return _parse_topics(response.content)
