"""Validated argument models for each assistant operation.

The model returns arguments as loosely typed JSON. Each operation gets a
pydantic model that coerces what it can (``"12"`` -> 12, ``"need"`` ->
``NEED``, ``"$4.50"`` -> 4.50) and rejects the rest as ``InvalidArguments``.
Amount rules raise the narrower ``InvalidAmount``.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Literal, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from voice_budget.domain.periods import parse_day
from voice_budget.errors import InvalidAmount, InvalidArguments
from voice_budget.models import Bucket, GoalStatus, TransactionType

MAX_AMOUNT = Decimal("1000000")


def _upper(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().upper() or None
    return value


def _lower(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower() or None
    return value


def _money(value: Any) -> Any:
    if isinstance(value, str):
        cleaned = value.strip().replace("$", "").replace(",", "")
        return cleaned or None
    return value


def _day(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return parse_day(value)
        except ValueError:
            return value
    return value


def _tags(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list):
        tags: list[str] = []
        for item in value:
            tag = str(item).strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags
    return value


Amount = Annotated[Decimal, BeforeValidator(_money)]
OptionalAmount = Annotated[Decimal | None, BeforeValidator(_money)]
BucketArg = Annotated[Bucket | None, BeforeValidator(_upper)]
StatusArg = Annotated[GoalStatus | None, BeforeValidator(_upper)]
TypeArg = Annotated[TransactionType, BeforeValidator(_upper)]
OptionalTypeArg = Annotated[TransactionType | None, BeforeValidator(_upper)]
DayArg = Annotated[date | None, BeforeValidator(_day)]
PeriodArg = Annotated[Literal["month", "week"], BeforeValidator(_lower)]
TagsArg = Annotated[list[str], BeforeValidator(_tags)]
Text = Annotated[str, Field(min_length=1)]
OptionalText = Annotated[str, Field(min_length=1)] | None


def require_positive(field: str, value: Decimal | None) -> None:
    if value is None:
        return
    if not value.is_finite() or value <= 0:
        raise InvalidAmount(f"{field} must be a positive number, got {value}")
    if value > MAX_AMOUNT:
        raise InvalidAmount(f"{field} of {value} seems unusually high")


class OperationArgs(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    def check(self) -> None:
        """Cross-field rules that pydantic types cannot express."""


class AddTransactionArgs(OperationArgs):
    amount: Amount
    type: TypeArg = TransactionType.EXPENSE
    description: Text
    category: Text
    bucket: BucketArg = None
    date: DayArg = None
    tags: TagsArg = Field(default_factory=list)

    def check(self) -> None:
        require_positive("amount", self.amount)


class UpdateTransactionArgs(OperationArgs):
    transaction_id: int = Field(alias="transactionId")
    amount: OptionalAmount = None
    description: OptionalText = None
    category: OptionalText = None
    bucket: BucketArg = None
    type: OptionalTypeArg = None

    def check(self) -> None:
        require_positive("amount", self.amount)
        changes = (self.amount, self.description, self.category, self.bucket, self.type)
        if all(value is None for value in changes):
            raise InvalidArguments("Nothing to update: give a new amount, description, category, bucket or type")


class TransactionIdArgs(OperationArgs):
    transaction_id: int = Field(alias="transactionId")


class ListTransactionsArgs(OperationArgs):
    start_date: DayArg = Field(default=None, alias="startDate")
    end_date: DayArg = Field(default=None, alias="endDate")
    category: OptionalText = None
    bucket: BucketArg = None

    def check(self) -> None:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise InvalidArguments("startDate must not be after endDate")


class CreateGoalArgs(OperationArgs):
    name: Text
    target_amount: Amount = Field(alias="targetAmount")
    deadline: DayArg = None
    category: OptionalText = None

    def check(self) -> None:
        require_positive("targetAmount", self.target_amount)
        if self.deadline is not None and self.deadline < date.today():
            raise InvalidArguments("Deadline cannot be in the past")


class UpdateGoalArgs(OperationArgs):
    goal_id: int = Field(alias="goalId")
    name: OptionalText = None
    target_amount: OptionalAmount = Field(default=None, alias="targetAmount")
    status: StatusArg = None
    add_amount: OptionalAmount = Field(default=None, alias="addAmount")

    def check(self) -> None:
        require_positive("targetAmount", self.target_amount)
        require_positive("addAmount", self.add_amount)


class GoalIdArgs(OperationArgs):
    goal_id: int = Field(alias="goalId")


class ListGoalsArgs(OperationArgs):
    status: StatusArg = None


class SetCategoryBudgetArgs(OperationArgs):
    category: Text
    budget: Amount

    def check(self) -> None:
        if self.budget < 0:
            raise InvalidAmount("budget cannot be negative")
        if self.budget > 0:
            require_positive("budget", self.budget)


class PeriodArgs(OperationArgs):
    period: PeriodArg = "month"


class NoArgs(OperationArgs):
    pass


class RecentActivityArgs(OperationArgs):
    limit: int = Field(default=5, ge=1, le=50)


class TopCategoriesArgs(OperationArgs):
    limit: int = Field(default=3, ge=1, le=20)
    period: PeriodArg = "month"


class LookupPriceArgs(OperationArgs):
    item: Text


ArgsT = TypeVar("ArgsT", bound=OperationArgs)


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
        problems.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(problems)


def parse_arguments(model: type[ArgsT], raw: dict[str, Any] | None) -> ArgsT:
    if raw is not None and not isinstance(raw, dict):
        raise InvalidArguments(f"Arguments must be an object, got {type(raw).__name__}")
    # The model sometimes sends explicit nulls for optional fields.
    cleaned = {key: value for key, value in (raw or {}).items() if value is not None}
    try:
        args = model.model_validate(cleaned)
    except ValidationError as exc:
        raise InvalidArguments(_describe(exc)) from exc
    args.check()
    return args
