from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from voice_budget.errors import InvalidArguments, VoiceBudgetError
from voice_budget.logger import get_logger

logger = get_logger(__name__)


def error_payload(exc: VoiceBudgetError) -> dict[str, str]:
    return {"error": exc.code, "message": exc.user_message, "detail": exc.detail}


async def handle_voice_budget_error(request: Request, exc: VoiceBudgetError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[API] %s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.detail)
    else:
        logger.info("[API] %s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_payload(exc))


def _describe_validation(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        # Drop the leading "body"/"query" part of the location.
        location = ".".join(str(part) for part in error.get("loc", ())[1:]) or "request"
        problems.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(problems)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await handle_voice_budget_error(request, InvalidArguments(_describe_validation(exc)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(VoiceBudgetError, handle_voice_budget_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
