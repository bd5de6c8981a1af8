"""Voice command pipeline: transcript -> intent -> dispatch, with an audit row.

Every command that reaches the pipeline gets one ``VoiceCommand`` row,
created as ``PROCESSING`` before the model is called and finished exactly
once with the outcome. The audit write runs in its own database transaction,
separate from the write the command performs.
"""

import asyncio
from time import perf_counter
from typing import Any

from pydantic import BaseModel, field_serializer
from pydantic_core import to_jsonable_python

from voice_budget.database.store import FinanceStore
from voice_budget.errors import EmptyInput, NoSelection
from voice_budget.logger import get_logger
from voice_budget.models import VoiceCommandRecord
from voice_budget.voice.dispatcher import CommandDispatcher
from voice_budget.voice.intent import IntentResolver
from voice_budget.voice.transcription import Transcriber

logger = get_logger(__name__)

PROCESSING_INTENT = "PROCESSING"
UNKNOWN_INTENT = "UNKNOWN"


class VoiceReply(BaseModel):
    message: str
    result: Any = None
    intent: str
    understood: bool = True
    text: str | None = None
    command_id: int | None = None

    @field_serializer("result")
    def _serialize_result(self, result: Any) -> Any:
        # Money inside records is written as numbers, not strings.
        return to_jsonable_python(result)


def _elapsed_ms(started: float) -> int:
    return int(round((perf_counter() - started) * 1000))


class VoicePipeline:
    def __init__(
        self,
        store: FinanceStore,
        resolver: IntentResolver,
        dispatcher: CommandDispatcher,
        transcriber: Transcriber,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.transcriber = transcriber

    async def _finish(
        self,
        command_id: int,
        *,
        intent: str,
        parameters: dict[str, Any],
        success: bool,
        started: float,
    ) -> None:
        await asyncio.to_thread(
            self.store.finish_voice_command,
            command_id,
            intent=intent,
            parameters=parameters,
            success=success,
            processing_time_ms=_elapsed_ms(started),
        )

    async def _finish_failed(self, command_id: int, intent: str, parameters: dict[str, Any], started: float) -> None:
        # A failed audit update is only logged; the original error still propagates.
        try:
            await self._finish(command_id, intent=intent, parameters=parameters, success=False, started=started)
        except Exception:
            logger.exception("[VOICE] Could not record failure of command %s.", command_id)

    async def handle_text(self, text: str | None) -> VoiceReply:
        if not text or not text.strip():
            raise EmptyInput("Command text is empty")

        text = text.strip()
        started = perf_counter()
        command = await asyncio.to_thread(self.store.create_voice_command, text)
        logger.info("[VOICE] Command %s received: '%s'", command.id, text)

        intent = PROCESSING_INTENT
        parameters: dict[str, Any] = {}
        try:
            resolved = await asyncio.to_thread(self.resolver.resolve, text)
            intent = resolved.operation
            parameters = resolved.arguments
            outcome = await asyncio.to_thread(
                self.dispatcher.dispatch,
                resolved.operation,
                resolved.arguments,
                resolved.analysis,
            )
        except NoSelection as exc:
            await self._finish(command.id, intent=UNKNOWN_INTENT, parameters={}, success=False, started=started)
            logger.info("[VOICE] Command %s not understood.", command.id)
            return VoiceReply(
                message=exc.user_message,
                result=None,
                intent=UNKNOWN_INTENT,
                understood=False,
                command_id=command.id,
            )
        except Exception as exc:
            await self._finish_failed(command.id, intent, parameters, started)
            logger.warning("[VOICE] Command %s failed (%s): %s", command.id, intent, exc)
            raise

        await self._finish(command.id, intent=intent, parameters=parameters, success=True, started=started)
        logger.info("[VOICE] Command %s handled as %s.", command.id, intent)
        return VoiceReply(
            message=outcome.message,
            result=outcome.result,
            intent=outcome.operation,
            command_id=command.id,
        )

    async def handle_audio(
        self,
        audio: bytes,
        content_type: str | None = None,
        filename: str | None = None,
    ) -> VoiceReply:
        text = await asyncio.to_thread(self.transcriber.transcribe, audio, content_type, filename)
        reply = await self.handle_text(text)
        reply.text = text
        return reply

    async def execute(
        self,
        intent: str,
        parameters: dict[str, Any] | None = None,
        raw_text: str | None = None,
    ) -> VoiceReply:
        """Run an already structured command without asking the model."""
        parameters = parameters or {}
        started = perf_counter()
        command = await asyncio.to_thread(self.store.create_voice_command, raw_text or intent)
        try:
            outcome = await asyncio.to_thread(self.dispatcher.dispatch, intent, parameters)
        except Exception:
            await self._finish_failed(command.id, intent, parameters, started)
            raise

        await self._finish(command.id, intent=intent, parameters=parameters, success=True, started=started)
        logger.info("[VOICE] Command %s executed as %s.", command.id, intent)
        return VoiceReply(
            message=outcome.message,
            result=outcome.result,
            intent=outcome.operation,
            command_id=command.id,
        )

    async def history(self, limit: int) -> list[VoiceCommandRecord]:
        return await asyncio.to_thread(self.store.list_voice_commands, limit)
