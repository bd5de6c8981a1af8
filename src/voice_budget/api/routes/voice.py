from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from voice_budget.api.dependencies import get_pipeline
from voice_budget.api.schemas import VoiceExecuteRequest, VoiceTextRequest
from voice_budget.core import settings
from voice_budget.errors import EmptyAudio, EmptyInput, InvalidArguments
from voice_budget.logger import get_logger
from voice_budget.models import VoiceCommandRecord
from voice_budget.services.voice import VoicePipeline, VoiceReply

logger = get_logger(__name__)

router = APIRouter()


async def _handle_form(request: Request, pipeline: VoicePipeline) -> VoiceReply:
    form = await request.form()
    upload = form.get("audio")
    if upload is None or isinstance(upload, str):
        text = form.get("text")
        if isinstance(text, str) and text.strip():
            return await pipeline.handle_text(text)
        raise EmptyAudio("No audio file in the upload")

    audio = await upload.read()
    logger.debug("[VOICE] Received audio upload '%s' (%d bytes).", upload.filename, len(audio))
    return await pipeline.handle_audio(audio, upload.content_type, upload.filename)


@router.post("/api/voice", response_model=VoiceReply)
async def voice_command(
    request: Request,
    pipeline: Annotated[VoicePipeline, Depends(get_pipeline)],
) -> VoiceReply:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        return await _handle_form(request, pipeline)

    try:
        payload = await request.json()
    except ValueError as exc:
        logger.warning("[VOICE] Received invalid JSON payload.")
        raise InvalidArguments("Invalid JSON payload") from exc

    if not isinstance(payload, dict):
        raise EmptyInput(f"Expected a JSON object, got {type(payload).__name__}")

    try:
        req = VoiceTextRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidArguments("Command text must be a string") from exc
    return await pipeline.handle_text(req.text)


@router.post("/api/voice/execute", response_model=VoiceReply)
async def execute_command(
    req: VoiceExecuteRequest,
    pipeline: Annotated[VoicePipeline, Depends(get_pipeline)],
) -> VoiceReply:
    return await pipeline.execute(req.intent, req.parameters, req.raw_text)


@router.get("/api/voice/history")
async def voice_history(
    pipeline: Annotated[VoicePipeline, Depends(get_pipeline)],
) -> list[VoiceCommandRecord]:
    return await pipeline.history(settings.HISTORY_LIMIT)
