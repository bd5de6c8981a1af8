"""Catalog of the operations the assistant may pick for a spoken command.

The catalog is handed to the model as function tools. Every name declared
here must have exactly one handler in the dispatcher, which checks this when
it is constructed.
"""

from dataclasses import dataclass
from typing import Any, Literal

from voice_budget.models import Bucket, GoalStatus, TransactionType

ParamKind = Literal["string", "number", "integer", "boolean", "enum", "array"]

_BUCKETS = tuple(bucket.value for bucket in Bucket)
_TYPES = tuple(kind.value for kind in TransactionType)
_STATUSES = tuple(status.value for status in GoalStatus)
_PERIODS = ("month", "week")


@dataclass(frozen=True)
class ParamSpec:
    name: str
    kind: ParamKind
    description: str
    values: tuple[str, ...] = ()
    items: ParamKind = "string"

    def json_schema(self) -> dict[str, Any]:
        if self.kind == "enum":
            return {"type": "string", "enum": list(self.values), "description": self.description}
        if self.kind == "array":
            return {"type": "array", "items": {"type": self.items}, "description": self.description}
        return {"type": self.kind, "description": self.description}


@dataclass(frozen=True)
class OperationSpec:
    name: str
    description: str
    params: tuple[ParamSpec, ...] = ()
    required: tuple[str, ...] = ()
    mutating: bool = False

    def param_names(self) -> tuple[str, ...]:
        return tuple(param.name for param in self.params)

    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {param.name: param.json_schema() for param in self.params},
            "required": list(self.required),
        }

    def tool_definition(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }


def _period(description: str = "Reporting period: the current month (default) or week") -> ParamSpec:
    return ParamSpec("period", "enum", description, values=_PERIODS)


REGISTRY: tuple[OperationSpec, ...] = (
    OperationSpec(
        name="addTransaction",
        description="Add a new transaction to track spending or income",
        params=(
            ParamSpec("amount", "number", "The amount of money involved in the transaction"),
            ParamSpec("type", "enum", "Whether this is income or an expense", values=_TYPES),
            ParamSpec("description", "string", "Description of the transaction"),
            ParamSpec("category", "string", "Category of the transaction (e.g. food, transport, salary)"),
            ParamSpec(
                "bucket",
                "enum",
                "50/30/20 bucket: NEED for essentials, WANT for discretionary, SAVING for savings",
                values=_BUCKETS,
            ),
            ParamSpec("date", "string", "Date of the transaction (ISO date), defaults to today"),
            ParamSpec("tags", "array", "Tags to help categorize the transaction"),
        ),
        required=("amount", "type", "description", "category"),
        mutating=True,
    ),
    OperationSpec(
        name="updateTransaction",
        description="Change the amount, description, category, bucket or type of an existing transaction",
        params=(
            ParamSpec("transactionId", "integer", "ID of the transaction to change"),
            ParamSpec("amount", "number", "New amount"),
            ParamSpec("description", "string", "New description"),
            ParamSpec("category", "string", "New category name"),
            ParamSpec("bucket", "enum", "New 50/30/20 bucket", values=_BUCKETS),
            ParamSpec("type", "enum", "New transaction type", values=_TYPES),
        ),
        required=("transactionId",),
        mutating=True,
    ),
    OperationSpec(
        name="deleteTransaction",
        description="Delete a transaction permanently",
        params=(ParamSpec("transactionId", "integer", "ID of the transaction to delete"),),
        required=("transactionId",),
        mutating=True,
    ),
    OperationSpec(
        name="listTransactions",
        description="List recent transactions, optionally filtered by date range, category or bucket",
        params=(
            ParamSpec("startDate", "string", "Only include transactions on or after this ISO date"),
            ParamSpec("endDate", "string", "Only include transactions on or before this ISO date"),
            ParamSpec("category", "string", "Only include this category"),
            ParamSpec("bucket", "enum", "Only include this bucket", values=_BUCKETS),
        ),
    ),
    OperationSpec(
        name="createGoal",
        description="Create a new financial goal",
        params=(
            ParamSpec("name", "string", "Name of the financial goal"),
            ParamSpec("targetAmount", "number", "Target amount to save or achieve"),
            ParamSpec("deadline", "string", "Deadline for achieving the goal (ISO date)"),
            ParamSpec("category", "string", "Savings category the goal belongs to"),
        ),
        required=("name", "targetAmount"),
        mutating=True,
    ),
    OperationSpec(
        name="updateGoal",
        description="Rename a goal, change its target or status, or add money saved towards it",
        params=(
            ParamSpec("goalId", "integer", "ID of the goal"),
            ParamSpec("name", "string", "New name"),
            ParamSpec("targetAmount", "number", "New target amount"),
            ParamSpec("status", "enum", "New status", values=_STATUSES),
            ParamSpec("addAmount", "number", "Amount to add to the money already saved"),
        ),
        required=("goalId",),
        mutating=True,
    ),
    OperationSpec(
        name="deleteGoal",
        description="Delete a financial goal permanently",
        params=(ParamSpec("goalId", "integer", "ID of the goal to delete"),),
        required=("goalId",),
        mutating=True,
    ),
    OperationSpec(
        name="listGoals",
        description="List financial goals and their progress",
        params=(ParamSpec("status", "enum", "Only include goals with this status", values=_STATUSES),),
    ),
    OperationSpec(
        name="setCategoryBudget",
        description="Set the monthly budget ceiling of an existing category",
        params=(
            ParamSpec("category", "string", "Name of the category"),
            ParamSpec("budget", "number", "Monthly budget for the category"),
        ),
        required=("category", "budget"),
        mutating=True,
    ),
    OperationSpec(
        name="getBudgetStatus",
        description="Show how much has been spent and remains in each 50/30/20 bucket",
        params=(_period(),),
    ),
    OperationSpec(
        name="getFinancialTip",
        description="Give a personalised tip for saving money based on recent spending",
    ),
    OperationSpec(
        name="showRecentActivity",
        description="Show the most recent transactions",
        params=(ParamSpec("limit", "integer", "How many transactions to show (default 5)"),),
    ),
    OperationSpec(
        name="showTopSpendingCategories",
        description="Show the categories with the highest spending",
        params=(
            ParamSpec("limit", "integer", "How many categories to show (default 3)"),
            _period(),
        ),
    ),
    OperationSpec(
        name="showIncomeVsExpenses",
        description="Compare total income with total expenses",
        params=(_period(),),
    ),
    OperationSpec(
        name="lookupPrice",
        description="Estimate the usual price, category and bucket of a common purchase",
        params=(ParamSpec("item", "string", "The item to look up, e.g. 'starbucks grande'"),),
        required=("item",),
    ),
)

_BY_NAME: dict[str, OperationSpec] = {spec.name: spec for spec in REGISTRY}


def operation_names() -> tuple[str, ...]:
    return tuple(_BY_NAME)


def get_operation(name: str) -> OperationSpec | None:
    return _BY_NAME.get(name)


def tool_definitions() -> list[dict[str, Any]]:
    return [spec.tool_definition() for spec in REGISTRY]
