from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

# Money stays Decimal in Python and is written as a JSON number.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class Bucket(str, Enum):
    NEED = "NEED"
    WANT = "WANT"
    SAVING = "SAVING"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class CategoryType(str, Enum):
    EXPENSE = "EXPENSE"
    SAVING = "SAVING"
    INVESTMENT = "INVESTMENT"


class GoalStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Frequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


BUCKETS: tuple[Bucket, ...] = (Bucket.NEED, Bucket.WANT, Bucket.SAVING)


class AiAnalysis(BaseModel):
    sentiment: str | None = None
    confidence: float = 1.0
    suggestions: list[str] = Field(default_factory=list)


class GoalSuggestions(BaseModel):
    recommendations: list[str] = Field(default_factory=list)
    strategy: str = ""


class CategoryRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    budget: Money | None = None
    type: CategoryType = CategoryType.EXPENSE


class TransactionRecord(BaseModel):
    id: int
    amount: Money
    description: str
    type: TransactionType
    bucket: Bucket
    date: datetime
    category_id: int
    category_name: str
    tags: list[str] = Field(default_factory=list)
    ai_analysis: AiAnalysis | None = None
    created_at: datetime | None = None


class GoalRecord(BaseModel):
    id: int
    name: str
    target_amount: Money
    current_amount: Money
    deadline: date | None = None
    status: GoalStatus
    category_id: int | None = None
    category_name: str | None = None
    ai_suggestions: GoalSuggestions | None = None
    created_at: datetime | None = None


class RecurringExpenseRecord(BaseModel):
    id: int
    name: str
    amount: Money
    frequency: Frequency
    next_due_date: date
    bucket: Bucket
    category_id: int
    category_name: str
    is_automatic: bool = False


class VoiceCommandRecord(BaseModel):
    id: int
    raw_text: str
    intent: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    success: bool
    processing_time_ms: int
    created_at: datetime | None = None


class ConfigEntry(BaseModel):
    key: str
    value: str
    updated_at: datetime | None = None
