import json
from datetime import date
from typing import Any

from openai import APIError, OpenAI
from pydantic import BaseModel, Field

from voice_budget.core import settings
from voice_budget.errors import EmptyInput, InvalidArguments, MalformedResponse, NoSelection, RemoteUnavailable
from voice_budget.logger import get_logger
from voice_budget.models import AiAnalysis
from voice_budget.voice.client import build_openai_client
from voice_budget.voice.registry import tool_definitions

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a financial assistant that helps users track their spending and manage "
    "their budget with the 50/30/20 rule (50% needs, 30% wants, 20% savings). "
    "Convert the user's command into exactly one function call. "
    "Use the NEED bucket for essentials, WANT for discretionary purchases and SAVING for money put aside. "
    "Today is {today}."
)


class ResolvedIntent(BaseModel):
    operation: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    analysis: AiAnalysis | None = None


def parse_argument_string(raw: Any) -> dict[str, Any]:
    """Decode the serialized arguments of a tool call without trusting them."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if not isinstance(raw, str):
        raise InvalidArguments(f"Arguments must be a JSON string, got {type(raw).__name__}")
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidArguments(f"Arguments are not valid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise InvalidArguments("Arguments must be a JSON object")
    return parsed


class IntentResolver:
    def __init__(
        self,
        client: OpenAI | None = None,
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ):
        self._client = client
        self.model = model or settings.openai_model()
        self.tools = tools if tools is not None else tool_definitions()

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = build_openai_client()
        return self._client

    def resolve(self, text: str) -> ResolvedIntent:
        if not text or not text.strip():
            raise EmptyInput("Command text is empty")

        prompt = text.strip()
        logger.debug("[INTENT] Resolving: '%s...'", prompt[:80])
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT.format(today=date.today().isoformat())},
                    {"role": "user", "content": prompt},
                ],
                tools=self.tools,
                tool_choice="auto",
                temperature=0.0,
            )
        except APIError as exc:
            logger.error("[INTENT] Completion request failed: %s", exc)
            raise RemoteUnavailable(f"Completion request failed: {exc}") from exc

        message = self._extract_message(response)
        content = getattr(message, "content", None)
        content = content if isinstance(content, str) and content.strip() else None

        name, raw_arguments = self._extract_call(message)
        if name is None:
            logger.info("[INTENT] Model answered without selecting an operation.")
            raise NoSelection(content)

        arguments = parse_argument_string(raw_arguments)
        logger.info("[INTENT] Selected '%s' with %d argument(s).", name, len(arguments))
        analysis = AiAnalysis(sentiment=content) if content else None
        return ResolvedIntent(operation=name, arguments=arguments, analysis=analysis)

    @staticmethod
    def _extract_message(response: object) -> object:
        choices = getattr(response, "choices", None)
        if not choices:
            raise MalformedResponse("Completion response has no choices")
        message = getattr(choices[0], "message", None)
        if message is None:
            raise MalformedResponse("Completion choice has no message")
        return message

    @staticmethod
    def _extract_call(message: object) -> tuple[str | None, Any]:
        tool_calls = getattr(message, "tool_calls", None) or []
        calls = [call for call in tool_calls if getattr(call, "function", None) is not None]
        if len(calls) > 1:
            logger.debug("[INTENT] %d tool calls returned; using the first.", len(calls))

        function = calls[0].function if calls else getattr(message, "function_call", None)
        if function is None:
            return None, None

        name = getattr(function, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise MalformedResponse("Tool call has no function name")
        return name.strip(), getattr(function, "arguments", None)
