"""The agent-facing tool set"""

import structlog

from app.schemas.tools import (
    CallArgs,
    CallListItem,
    CallResult,
    CallStatusArgs,
    CallStatusResult,
    ListCallsArgs,
    ListCallsResult,
    RecordArgs,
    RecordResult,
    SummarizeArgs,
    SummarizeResult,
    TranscribeArgs,
    TranscribeResult,
    ValidateArgs,
    ValidateResult,
)
from app.services.auth import TokenValidator
from app.services.summarization import SummarizationService
from app.services.transcription import TranscriptionService
from app.telephony.base import TelephonyProvider
from app.tools.dispatcher import ToolDispatcher

logger = structlog.get_logger()

CALL_INITIATED = "Call initiated successfully"


def register_tools(
    dispatcher: ToolDispatcher,
    telephony: TelephonyProvider,
    transcription: TranscriptionService,
    summarization: SummarizationService,
    token_validator: TokenValidator,
) -> ToolDispatcher:
    """Register every tool on `dispatcher`, bound to the given services"""

    @dispatcher.tool("validate", ValidateArgs, "Validate a bearer token and return user information")
    async def validate(args: ValidateArgs) -> dict:
        outcome = await token_validator.validate(args.token)
        result = ValidateResult(
            is_valid=outcome.is_valid,
            phone_number=outcome.user.phone_number if outcome.user else None,
            message=outcome.message,
        )
        return result.model_dump(by_alias=True, exclude_none=True)

    @dispatcher.tool("call", CallArgs, "Make a phone call to a customer using Twilio")
    async def call(args: CallArgs) -> dict:
        logger.info("Tool: call", to=args.to[-4:], voice=args.voice, language=args.language)
        placed = await telephony.place_call(
            to=args.to,
            message=args.message,
            voice=args.voice,
            language=args.language,
        )
        return CallResult(
            call_id=placed.call_id,
            status=placed.status,
            to=placed.to,
            from_number=placed.from_number,
            message=CALL_INITIATED,
        ).model_dump(by_alias=True)

    @dispatcher.tool("call-status", CallStatusArgs, "Get the status of a specific call")
    async def call_status(args: CallStatusArgs) -> dict:
        snapshot = await telephony.get_call_status(args.call_id)
        return CallStatusResult(
            call_id=args.call_id,
            status=snapshot.status,
            duration=snapshot.duration,
            start_time=snapshot.start_time,
            end_time=snapshot.end_time,
            price=snapshot.price,
        ).model_dump(by_alias=True)

    @dispatcher.tool("list-calls", ListCallsArgs, "List all recent calls made through the system")
    async def list_calls(args: ListCallsArgs) -> dict:
        calls = await telephony.list_calls(limit=args.limit, status=args.status)
        return ListCallsResult(
            calls=[
                CallListItem(
                    call_id=call.call_id,
                    to=call.to,
                    from_number=call.from_number,
                    status=call.status,
                    start_time=call.start_time,
                    duration=call.duration,
                    price=call.price,
                )
                for call in calls
            ]
        ).model_dump(by_alias=True)

    @dispatcher.tool("transcribe", TranscribeArgs, "Transcribe audio from a call stream or an audio file")
    async def transcribe(args: TranscribeArgs) -> dict:
        result = await transcription.transcribe(
            call_id=args.call_id,
            audio_url=args.audio_url,
            language=args.language,
        )
        return TranscribeResult(
            transcription_id=result.id,
            text=result.text,
            confidence=result.confidence,
            language=result.language,
            duration=result.duration,
            word_count=result.word_count,
            status=result.status,
        ).model_dump(by_alias=True)

    @dispatcher.tool("summarize", SummarizeArgs, "Summarize call transcript or text content")
    async def summarize(args: SummarizeArgs) -> dict:
        summary = await summarization.summarize(
            text=args.text,
            max_length=args.max_length,
            style=args.style,
            language=args.language,
        )
        return SummarizeResult(
            summary=summary.summary,
            original_length=summary.original_length,
            summary_length=summary.summary_length,
            key_topics=summary.key_topics,
            sentiment=summary.sentiment,
        ).model_dump(by_alias=True)

    @dispatcher.tool("record", RecordArgs, "Start or stop recording a call")
    async def record(args: RecordArgs) -> dict:
        if args.action == "start":
            recording = await telephony.start_recording(
                args.call_id,
                channels=args.recording_channels,
                callback_url=args.recording_status_callback,
            )
        else:
            recording = await telephony.stop_recording(args.call_id)

        return RecordResult(
            recording_id=recording.recording_id,
            call_id=recording.call_id,
            status=recording.status,
            action=args.action,
            recording_url=recording.recording_url,
            duration=recording.duration,
        ).model_dump(by_alias=True, exclude_none=True)

    return dispatcher
