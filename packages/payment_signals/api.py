"""Public API surface for the ``payment_signals`` package.

``create_pipeline`` wires a :class:`~payment_signals.pipeline.SignalPipeline`
to either in-memory stores or the shared database, and
``suggest_categories`` ranks categories for a transaction about to be saved.

DB and persistence imports are local to the functions that need them so
consumers using only the in-memory stores do not pay for SQLAlchemy at
import time.
"""

from __future__ import annotations

from .clock import Clock, SystemClock
from .config import Settings
from .models import ScoredCategory, TransactionFields
from .pipeline import SignalPipeline
from .recommend import CategoryRecommendationScorer
from .stores import CategoryContext, InMemoryReminderStore, InMemoryTransactionStore


def create_pipeline(
    *,
    clock: Clock | None = None,
    settings: Settings | None = None,
    persist: bool = False,
    database_url: str | None = None,
) -> SignalPipeline:
    """Build a pipeline with in-memory stores, or SQL stores when ``persist``.

    With ``persist`` the database URL comes from ``database_url`` or the
    ``DATABASE_URL`` environment variable; the schema must already exist
    (``alembic upgrade head``).
    """

    clock = clock or SystemClock()
    settings = settings or Settings.from_env()
    if persist:
        from .persistence import SqlReminderStore, SqlTransactionStore  # local import

        transactions = SqlTransactionStore(clock, database_url=database_url)
        reminders = SqlReminderStore(clock, database_url=database_url)
        return SignalPipeline(
            clock=clock, transactions=transactions, reminders=reminders, settings=settings
        )
    return SignalPipeline(
        clock=clock,
        transactions=InMemoryTransactionStore(clock),
        reminders=InMemoryReminderStore(clock),
        settings=settings,
    )


def suggest_categories(
    fields: TransactionFields,
    context: CategoryContext,
    *,
    clock: Clock | None = None,
    settings: Settings | None = None,
    hour: int | None = None,
) -> list[ScoredCategory]:
    """Rank categories for ``fields`` using the context's recent history.

    Returns the top suggestions followed by the remaining top-level
    categories (see :meth:`CategoryRecommendationScorer.recommend`).
    """

    settings = settings or Settings.from_env()
    scorer = CategoryRecommendationScorer(clock or SystemClock())
    categories = context.list_categories()
    history = context.list_historical_transactions(settings.history_limit)
    return scorer.recommend(fields, categories, history, hour=hour)


__all__ = ["create_pipeline", "suggest_categories"]
