"""Convert ORM rows into the pydantic records handed out by the store."""

from voice_budget.database import models as orm
from voice_budget.models import (
    AiAnalysis,
    CategoryRecord,
    ConfigEntry,
    GoalRecord,
    GoalSuggestions,
    RecurringExpenseRecord,
    TransactionRecord,
    VoiceCommandRecord,
)


def category_to_record(row: orm.Category) -> CategoryRecord:
    return CategoryRecord(id=row.id, name=row.name, budget=row.budget, type=row.type)


def transaction_to_record(row: orm.Transaction) -> TransactionRecord:
    analysis = None
    if row.ai_analysis is not None:
        analysis = AiAnalysis.model_validate(row.ai_analysis)
    return TransactionRecord(
        id=row.id,
        amount=row.amount,
        description=row.description,
        type=row.type,
        bucket=row.bucket,
        date=row.date,
        category_id=row.category_id,
        category_name=row.category.name,
        tags=list(row.tags or []),
        ai_analysis=analysis,
        created_at=row.created_at,
    )


def goal_to_record(row: orm.Goal) -> GoalRecord:
    suggestions = None
    if row.ai_suggestions is not None:
        suggestions = GoalSuggestions.model_validate(row.ai_suggestions)
    return GoalRecord(
        id=row.id,
        name=row.name,
        target_amount=row.target_amount,
        current_amount=row.current_amount,
        deadline=row.deadline,
        status=row.status,
        category_id=row.category_id,
        category_name=row.category.name if row.category else None,
        ai_suggestions=suggestions,
        created_at=row.created_at,
    )


def recurring_to_record(row: orm.RecurringExpense) -> RecurringExpenseRecord:
    return RecurringExpenseRecord(
        id=row.id,
        name=row.name,
        amount=row.amount,
        frequency=row.frequency,
        next_due_date=row.next_due_date,
        bucket=row.bucket,
        category_id=row.category_id,
        category_name=row.category.name,
        is_automatic=row.is_automatic,
    )


def voice_command_to_record(row: orm.VoiceCommand) -> VoiceCommandRecord:
    return VoiceCommandRecord(
        id=row.id,
        raw_text=row.raw_text,
        intent=row.intent,
        parameters=dict(row.parameters or {}),
        success=row.success,
        processing_time_ms=row.processing_time_ms,
        created_at=row.created_at,
    )


def config_to_entry(row: orm.UserConfig) -> ConfigEntry:
    return ConfigEntry(key=row.key, value=row.value, updated_at=row.updated_at)
