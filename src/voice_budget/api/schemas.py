from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from voice_budget.models import Bucket, GoalStatus, TransactionType

Day = date | None


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def as_arguments(self) -> dict[str, Any]:
        """Camel-cased, JSON-typed arguments in the shape the dispatcher accepts."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class VoiceTextRequest(BaseModel):
    text: str | None = Field(default=None, validation_alias=AliasChoices("text", "voiceText"))


class VoiceExecuteRequest(ApiModel):
    intent: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    raw_text: str | None = Field(default=None, alias="rawText")


class TransactionCreate(ApiModel):
    amount: Decimal
    description: str
    category: str
    type: TransactionType = TransactionType.EXPENSE
    bucket: Bucket | None = None
    date: Day = None
    tags: list[str] = Field(default_factory=list)


class TransactionUpdate(ApiModel):
    amount: Decimal | None = None
    description: str | None = None
    category: str | None = None
    bucket: Bucket | None = None
    type: TransactionType | None = None


class SpontaneousRequest(ApiModel):
    amount: Decimal
    description: str
    category_id: int = Field(alias="categoryId")


class GoalCreate(ApiModel):
    name: str
    target_amount: Decimal = Field(alias="targetAmount")
    deadline: Day = None
    category: str | None = None


class GoalUpdate(ApiModel):
    name: str | None = None
    target_amount: Decimal | None = Field(default=None, alias="targetAmount")
    status: GoalStatus | None = None
    add_amount: Decimal | None = Field(default=None, alias="addAmount")


class CategoryBudgetUpdate(ApiModel):
    budget: Decimal


class ConfigUpdate(BaseModel):
    key: str
    value: str | int | float


class InsightResponse(BaseModel):
    insight: str


class StatusResponse(BaseModel):
    status: str
    message: str
