"""Speech-to-text backends"""

import math
import wave
from abc import ABC, abstractmethod

from openai import AsyncOpenAI
import structlog

from app.schemas.transcription import ChunkTranscript

logger = structlog.get_logger()

SIMULATED_TEXT = "This is a simulated transcription of the audio content."


def wav_duration(audio_path: str) -> float:
    """Duration in seconds read from a WAV header"""
    with wave.open(audio_path, "rb") as wav:
        rate = wav.getframerate()
        return wav.getnframes() / rate if rate else 0.0


class TranscriptionBackend(ABC):
    """Turns one audio file into text"""

    @abstractmethod
    async def transcribe(self, audio_path: str, language: str) -> ChunkTranscript:
        pass


class WhisperTranscriptionBackend(TranscriptionBackend):
    """OpenAI Whisper transcription"""

    def __init__(self, api_key: str, model: str = "whisper-1", timeout: float = 20.0):
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def transcribe(self, audio_path: str, language: str) -> ChunkTranscript:
        """
        Transcribe audio using OpenAI Whisper.

        Args:
            audio_path: Path to a WAV (or other Whisper-supported) file
            language: Locale tag such as en-US; Whisper takes the language part

        Returns:
            Transcript text with a confidence derived from segment log-probabilities
        """
        with open(audio_path, "rb") as audio_file:
            response = await self.client.audio.transcriptions.create(
                model=self.model,
                file=audio_file,
                language=language.split("-")[0].lower(),
                response_format="verbose_json",
            )

        segments = getattr(response, "segments", None) or []
        if segments:
            mean_logprob = sum(segment.avg_logprob for segment in segments) / len(segments)
            confidence = min(1.0, max(0.0, math.exp(mean_logprob)))
        else:
            confidence = 0.0

        logger.debug(
            "Whisper transcription",
            model=self.model,
            segments=len(segments),
            text_length=len(response.text),
        )

        return ChunkTranscript(
            text=response.text.strip(),
            confidence=confidence,
            duration=float(getattr(response, "duration", 0.0) or 0.0),
            language=language,
        )


class SimulatedTranscriptionBackend(TranscriptionBackend):
    """Deterministic stand-in used when no speech-to-text credentials are configured"""

    def __init__(self, text: str = SIMULATED_TEXT, confidence: float = 0.95):
        self.text = text
        self.confidence = confidence

    async def transcribe(self, audio_path: str, language: str) -> ChunkTranscript:
        try:
            duration = wav_duration(audio_path)
        except (wave.Error, EOFError):
            # not a WAV file (e.g. a downloaded mp3); duration unknown
            duration = 0.0

        logger.info("Simulated transcription", audio_path=audio_path, duration=duration)
        return ChunkTranscript(
            text=self.text,
            confidence=self.confidence,
            duration=duration,
            language=language,
        )
