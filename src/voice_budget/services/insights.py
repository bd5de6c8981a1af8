import asyncio
from datetime import date, datetime, time

from openai import APIError, OpenAI

from voice_budget.core import settings
from voice_budget.database.store import FinanceStore
from voice_budget.errors import MalformedResponse, RemoteUnavailable
from voice_budget.logger import get_logger
from voice_budget.models import TransactionRecord
from voice_budget.voice.client import build_openai_client

logger = get_logger(__name__)

INSIGHT_TRANSACTION_LIMIT = 50
NO_ACTIVITY_INSIGHT = "No transactions recorded this month yet. Log a purchase to get your first insight."


def build_insight_prompt(transactions: list[TransactionRecord]) -> str:
    lines = "\n".join(
        f"- ${tx.amount:.2f} for {tx.description} ({tx.bucket.value})" for tx in transactions
    )
    return (
        f"Here are the user's recent transactions for this month:\n{lines}\n\n"
        "Summarize the user's spending habits in one sentence. "
        "Suggest one way they could save more next month. "
        "If possible, predict if they are on track with their 50/30/20 budget."
    )


class InsightService:
    def __init__(self, store: FinanceStore, client: OpenAI | None = None, model: str | None = None):
        self.store = store
        self._client = client
        self.model = model or settings.openai_model()

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = build_openai_client()
        return self._client

    def _complete(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You are a financial assistant."},
                    {"role": "user", "content": prompt},
                ],
            )
        except APIError as exc:
            logger.error("[INSIGHTS] Completion request failed: %s", exc)
            raise RemoteUnavailable(f"Completion request failed: {exc}") from exc

        choices = getattr(response, "choices", None)
        if not choices:
            raise MalformedResponse("Completion response has no choices")
        content = getattr(getattr(choices[0], "message", None), "content", None)
        if not isinstance(content, str) or not content.strip():
            raise MalformedResponse("Completion response has no text")
        return content.strip()

    async def insight(self) -> str:
        today = date.today()
        start = datetime.combine(today.replace(day=1), time.min)
        transactions = await asyncio.to_thread(
            self.store.list_transactions,
            start=start,
            end=datetime.now(),
            limit=INSIGHT_TRANSACTION_LIMIT,
        )
        if not transactions:
            return NO_ACTIVITY_INSIGHT
        logger.debug("[INSIGHTS] Summarizing %d transactions.", len(transactions))
        return await asyncio.to_thread(self._complete, build_insight_prompt(transactions))
