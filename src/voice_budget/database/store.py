"""Relational store behind the voice pipeline and the CRUD routes.

The store is constructed once by the application entry point and handed to
every component that needs it. Each public method runs in its own database
transaction and returns pydantic records, never live ORM rows.
"""

from collections.abc import Callable, Iterable
from datetime import date, datetime
from decimal import Decimal
from typing import Any, TypeVar

from sqlalchemy import create_engine, delete, event, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker
from sqlalchemy.pool import StaticPool

from voice_budget.database import models as orm
from voice_budget.database.mappers import (
    category_to_record,
    config_to_entry,
    goal_to_record,
    recurring_to_record,
    transaction_to_record,
    voice_command_to_record,
)
from voice_budget.errors import (
    NotFound,
    category_not_found,
    goal_not_found,
    transaction_not_found,
)
from voice_budget.logger import get_logger
from voice_budget.models import (
    AiAnalysis,
    Bucket,
    CategoryRecord,
    CategoryType,
    ConfigEntry,
    Frequency,
    GoalRecord,
    GoalStatus,
    GoalSuggestions,
    RecurringExpenseRecord,
    TransactionRecord,
    TransactionType,
    VoiceCommandRecord,
)

logger = get_logger(__name__)

T = TypeVar("T")

PRESERVED_CONFIG_KEYS = frozenset({"monthly_income"})


def _is_memory_sqlite(url: str) -> bool:
    return url in {"sqlite://", "sqlite:///:memory:"} or ":memory:" in url


def create_store_engine(database_url: str, echo: bool = False) -> Engine:
    kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # Handlers hop between threads (asyncio.to_thread).
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(database_url):
            # One shared connection so every session sees the same in-memory DB.
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)

    if database_url.startswith("sqlite"):

        @event.listens_for(engine, "connect")
        def _sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

    return engine


class FinanceStore:
    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.engine = create_store_engine(database_url, echo=echo)
        orm.Base.metadata.create_all(self.engine)
        self.session_factory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False
        )

    def close(self) -> None:
        self.engine.dispose()

    def _run(self, work: Callable[[Session], T]) -> T:
        with self.session_factory.begin() as session:
            return work(session)

    # Categories

    @staticmethod
    def _find_category(session: Session, name: str) -> orm.Category | None:
        stmt = select(orm.Category).where(func.lower(orm.Category.name) == name.strip().lower())
        return session.scalars(stmt).first()

    def _get_or_create_category(
        self,
        session: Session,
        name: str,
        category_type: CategoryType | None = None,
    ) -> orm.Category:
        row = self._find_category(session, name)
        if row is not None:
            return row
        row = orm.Category(name=name.strip(), type=category_type or CategoryType.EXPENSE)
        session.add(row)
        session.flush()
        logger.info("[STORE] Created category '%s' (id=%s).", row.name, row.id)
        return row

    def _with_category_retry(self, name: str, work: Callable[[Session], T]) -> T:
        try:
            return self._run(work)
        except IntegrityError:
            # Another request inserted the same category name first.
            logger.info("[STORE] Category '%s' was created concurrently; retrying.", name)
            return self._run(work)

    def list_categories(self) -> list[CategoryRecord]:
        def work(session: Session) -> list[CategoryRecord]:
            rows = session.scalars(select(orm.Category).order_by(orm.Category.name))
            return [category_to_record(row) for row in rows]

        return self._run(work)

    def get_category_by_name(self, name: str) -> CategoryRecord | None:
        def work(session: Session) -> CategoryRecord | None:
            row = self._find_category(session, name)
            return category_to_record(row) if row else None

        return self._run(work)

    def ensure_category(
        self,
        name: str,
        category_type: CategoryType | None = None,
        budget: Decimal | None = None,
    ) -> CategoryRecord:
        def work(session: Session) -> CategoryRecord:
            row = self._get_or_create_category(session, name, category_type)
            if budget is not None and row.budget is None:
                row.budget = budget
            return category_to_record(row)

        return self._with_category_retry(name, work)

    def set_category_budget(self, name: str, budget: Decimal) -> CategoryRecord:
        def work(session: Session) -> CategoryRecord:
            row = self._find_category(session, name)
            if row is None:
                raise NotFound(category_not_found(name))
            row.budget = budget
            return category_to_record(row)

        return self._run(work)

    # Transactions

    def _insert_transaction(
        self,
        session: Session,
        category: orm.Category,
        *,
        amount: Decimal,
        description: str,
        transaction_type: TransactionType,
        bucket: Bucket,
        when: datetime | None,
        tags: Iterable[str] | None,
        ai_analysis: AiAnalysis | None,
    ) -> TransactionRecord:
        row = orm.Transaction(
            amount=amount,
            description=description,
            type=transaction_type,
            bucket=bucket,
            date=when or datetime.now(),
            category=category,
            tags=list(tags or []),
            ai_analysis=ai_analysis.model_dump() if ai_analysis is not None else None,
        )
        session.add(row)
        session.flush()
        return transaction_to_record(row)

    def add_transaction(
        self,
        *,
        amount: Decimal,
        description: str,
        transaction_type: TransactionType,
        bucket: Bucket,
        category_name: str,
        when: datetime | None = None,
        tags: Iterable[str] | None = None,
        ai_analysis: AiAnalysis | None = None,
    ) -> TransactionRecord:
        """Upsert the category by name and create the transaction atomically."""
        category_type = CategoryType.SAVING if bucket is Bucket.SAVING else None
        tag_list = list(tags or [])

        def work(session: Session) -> TransactionRecord:
            category = self._get_or_create_category(session, category_name, category_type)
            return self._insert_transaction(
                session,
                category,
                amount=amount,
                description=description,
                transaction_type=transaction_type,
                bucket=bucket,
                when=when,
                tags=tag_list,
                ai_analysis=ai_analysis,
            )

        record = self._with_category_retry(category_name, work)
        logger.info(
            "[STORE] Transaction %s: %s %.2f in '%s' (%s).",
            record.id,
            record.type.value,
            record.amount,
            record.category_name,
            record.bucket.value,
        )
        return record

    def add_transaction_to_category(
        self,
        category_id: int,
        *,
        amount: Decimal,
        description: str,
        transaction_type: TransactionType,
        bucket: Bucket,
        when: datetime | None = None,
        tags: Iterable[str] | None = None,
    ) -> TransactionRecord:
        def work(session: Session) -> TransactionRecord:
            category = session.get(orm.Category, category_id)
            if category is None:
                raise NotFound(f"Category {category_id} not found")
            return self._insert_transaction(
                session,
                category,
                amount=amount,
                description=description,
                transaction_type=transaction_type,
                bucket=bucket,
                when=when,
                tags=tags,
                ai_analysis=None,
            )

        return self._run(work)

    def get_transaction(self, transaction_id: int) -> TransactionRecord:
        def work(session: Session) -> TransactionRecord:
            row = session.get(orm.Transaction, transaction_id)
            if row is None:
                raise NotFound(transaction_not_found(transaction_id))
            return transaction_to_record(row)

        return self._run(work)

    def update_transaction(
        self,
        transaction_id: int,
        *,
        amount: Decimal | None = None,
        description: str | None = None,
        transaction_type: TransactionType | None = None,
        bucket: Bucket | None = None,
        category_name: str | None = None,
        when: datetime | None = None,
    ) -> TransactionRecord:
        def work(session: Session) -> TransactionRecord:
            row = session.get(orm.Transaction, transaction_id)
            if row is None:
                raise NotFound(transaction_not_found(transaction_id))
            if amount is not None:
                row.amount = amount
            if description is not None:
                row.description = description
            if transaction_type is not None:
                row.type = transaction_type
            if bucket is not None:
                row.bucket = bucket
            if when is not None:
                row.date = when
            if category_name is not None:
                row.category = self._get_or_create_category(session, category_name)
            session.flush()
            return transaction_to_record(row)

        return self._with_category_retry(category_name or "", work)

    def delete_transaction(self, transaction_id: int) -> TransactionRecord:
        def work(session: Session) -> TransactionRecord:
            row = session.get(orm.Transaction, transaction_id)
            if row is None:
                raise NotFound(transaction_not_found(transaction_id))
            record = transaction_to_record(row)
            session.delete(row)
            return record

        return self._run(work)

    def list_transactions(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        category: str | None = None,
        bucket: Bucket | None = None,
        transaction_type: TransactionType | None = None,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        """Newest first; every filter left as None imposes no constraint."""

        def work(session: Session) -> list[TransactionRecord]:
            stmt = select(orm.Transaction).options(selectinload(orm.Transaction.category))
            if start is not None:
                stmt = stmt.where(orm.Transaction.date >= start)
            if end is not None:
                stmt = stmt.where(orm.Transaction.date <= end)
            if category:
                stmt = stmt.join(orm.Transaction.category).where(
                    func.lower(orm.Category.name) == category.strip().lower()
                )
            if bucket is not None:
                stmt = stmt.where(orm.Transaction.bucket == bucket)
            if transaction_type is not None:
                stmt = stmt.where(orm.Transaction.type == transaction_type)
            stmt = stmt.order_by(orm.Transaction.date.desc(), orm.Transaction.id.desc())
            if limit is not None:
                stmt = stmt.limit(limit)
            return [transaction_to_record(row) for row in session.scalars(stmt)]

        return self._run(work)

    # Goals

    def create_goal(
        self,
        *,
        name: str,
        target_amount: Decimal,
        deadline: date | None = None,
        category_name: str | None = None,
        ai_suggestions: GoalSuggestions | None = None,
    ) -> GoalRecord:
        def work(session: Session) -> GoalRecord:
            category = None
            if category_name:
                category = self._get_or_create_category(session, category_name, CategoryType.SAVING)
            row = orm.Goal(
                name=name,
                target_amount=target_amount,
                current_amount=Decimal("0"),
                deadline=deadline,
                status=GoalStatus.IN_PROGRESS,
                category=category,
                ai_suggestions=ai_suggestions.model_dump() if ai_suggestions is not None else None,
            )
            session.add(row)
            session.flush()
            return goal_to_record(row)

        record = self._with_category_retry(category_name or "", work)
        logger.info("[STORE] Goal %s '%s' created (target %.2f).", record.id, record.name, record.target_amount)
        return record

    def get_goal(self, goal_id: int) -> GoalRecord:
        def work(session: Session) -> GoalRecord:
            row = session.get(orm.Goal, goal_id)
            if row is None:
                raise NotFound(goal_not_found(goal_id))
            return goal_to_record(row)

        return self._run(work)

    def list_goals(self, status: GoalStatus | None = None) -> list[GoalRecord]:
        def work(session: Session) -> list[GoalRecord]:
            stmt = select(orm.Goal).options(selectinload(orm.Goal.category))
            if status is not None:
                stmt = stmt.where(orm.Goal.status == status)
            stmt = stmt.order_by(orm.Goal.created_at.desc(), orm.Goal.id.desc())
            return [goal_to_record(row) for row in session.scalars(stmt)]

        return self._run(work)

    def update_goal(
        self,
        goal_id: int,
        *,
        name: str | None = None,
        target_amount: Decimal | None = None,
        status: GoalStatus | None = None,
        add_amount: Decimal | None = None,
    ) -> GoalRecord:
        def work(session: Session) -> GoalRecord:
            row = session.get(orm.Goal, goal_id)
            if row is None:
                raise NotFound(goal_not_found(goal_id))
            if name is not None:
                row.name = name
            if target_amount is not None:
                row.target_amount = target_amount
            if status is not None:
                row.status = status
            session.flush()
            if add_amount is not None:
                # Single-statement increment; no read-modify-write in Python.
                session.execute(
                    update(orm.Goal)
                    .where(orm.Goal.id == goal_id)
                    .values(current_amount=orm.Goal.current_amount + add_amount)
                    .execution_options(synchronize_session=False)
                )
                session.refresh(row)
            return goal_to_record(row)

        return self._run(work)

    def delete_goal(self, goal_id: int) -> GoalRecord:
        def work(session: Session) -> GoalRecord:
            row = session.get(orm.Goal, goal_id)
            if row is None:
                raise NotFound(goal_not_found(goal_id))
            record = goal_to_record(row)
            session.delete(row)
            return record

        return self._run(work)

    # Recurring expenses

    def add_recurring_expense(
        self,
        *,
        name: str,
        amount: Decimal,
        frequency: Frequency,
        next_due_date: date,
        bucket: Bucket,
        category_name: str,
        is_automatic: bool = False,
    ) -> RecurringExpenseRecord:
        def work(session: Session) -> RecurringExpenseRecord:
            category = self._get_or_create_category(session, category_name)
            row = orm.RecurringExpense(
                name=name,
                amount=amount,
                frequency=frequency,
                next_due_date=next_due_date,
                bucket=bucket,
                category=category,
                is_automatic=is_automatic,
            )
            session.add(row)
            session.flush()
            return recurring_to_record(row)

        return self._with_category_retry(category_name, work)

    def list_recurring_expenses(self) -> list[RecurringExpenseRecord]:
        def work(session: Session) -> list[RecurringExpenseRecord]:
            stmt = (
                select(orm.RecurringExpense)
                .options(selectinload(orm.RecurringExpense.category))
                .order_by(orm.RecurringExpense.next_due_date)
            )
            return [recurring_to_record(row) for row in session.scalars(stmt)]

        return self._run(work)

    # Voice command audit

    def create_voice_command(self, raw_text: str) -> VoiceCommandRecord:
        def work(session: Session) -> VoiceCommandRecord:
            row = orm.VoiceCommand(
                raw_text=raw_text,
                intent="PROCESSING",
                parameters={},
                success=False,
                processing_time_ms=0,
            )
            session.add(row)
            session.flush()
            return voice_command_to_record(row)

        return self._run(work)

    def finish_voice_command(
        self,
        command_id: int,
        *,
        intent: str,
        parameters: dict[str, Any],
        success: bool,
        processing_time_ms: int,
    ) -> VoiceCommandRecord:
        def work(session: Session) -> VoiceCommandRecord:
            row = session.get(orm.VoiceCommand, command_id)
            if row is None:
                raise NotFound(f"Voice command {command_id} not found")
            row.intent = intent
            row.parameters = parameters
            row.success = success
            row.processing_time_ms = processing_time_ms
            session.flush()
            return voice_command_to_record(row)

        return self._run(work)

    def get_voice_command(self, command_id: int) -> VoiceCommandRecord:
        def work(session: Session) -> VoiceCommandRecord:
            row = session.get(orm.VoiceCommand, command_id)
            if row is None:
                raise NotFound(f"Voice command {command_id} not found")
            return voice_command_to_record(row)

        return self._run(work)

    def list_voice_commands(self, limit: int) -> list[VoiceCommandRecord]:
        def work(session: Session) -> list[VoiceCommandRecord]:
            stmt = (
                select(orm.VoiceCommand)
                .order_by(orm.VoiceCommand.created_at.desc(), orm.VoiceCommand.id.desc())
                .limit(limit)
            )
            return [voice_command_to_record(row) for row in session.scalars(stmt)]

        return self._run(work)

    # User configuration

    def get_config(self, key: str) -> ConfigEntry | None:
        def work(session: Session) -> ConfigEntry | None:
            row = session.get(orm.UserConfig, key)
            return config_to_entry(row) if row else None

        return self._run(work)

    def list_config(self) -> list[ConfigEntry]:
        def work(session: Session) -> list[ConfigEntry]:
            rows = session.scalars(select(orm.UserConfig).order_by(orm.UserConfig.key))
            return [config_to_entry(row) for row in rows]

        return self._run(work)

    def set_config(self, key: str, value: str) -> ConfigEntry:
        def work(session: Session) -> ConfigEntry:
            row = session.get(orm.UserConfig, key)
            if row is None:
                row = orm.UserConfig(key=key, value=value)
                session.add(row)
            else:
                row.value = value
            session.flush()
            return config_to_entry(row)

        return self._run(work)

    # Resets

    def reset_budget(self) -> None:
        """Zero amounts and goal progress; keep rows and the monthly income."""

        def work(session: Session) -> None:
            session.execute(update(orm.Transaction).values(amount=Decimal("0"), ai_analysis=None))
            session.execute(
                update(orm.Goal).values(
                    current_amount=Decimal("0"),
                    status=GoalStatus.IN_PROGRESS,
                    ai_suggestions=None,
                )
            )
            session.execute(
                delete(orm.UserConfig).where(orm.UserConfig.key.not_in(PRESERVED_CONFIG_KEYS))
            )

        self._run(work)
        logger.info("[STORE] Budget reset.")

    def reset_all(self) -> None:
        def work(session: Session) -> None:
            for model in (
                orm.Transaction,
                orm.Goal,
                orm.RecurringExpense,
                orm.Category,
                orm.VoiceCommand,
            ):
                session.execute(delete(model))

        self._run(work)
        logger.warning("[STORE] All data deleted.")
