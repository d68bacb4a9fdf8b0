"""Public interface for the ``payment_signals`` package.

Symbol re-exports only; see the individual modules for behavior.
"""

from .api import create_pipeline, suggest_categories
from .classify import classify_payment_notification, classify_sms
from .clock import Clock, ManualClock, SystemClock
from .config import Settings
from .correlator import AccessibilityPaymentCorrelator
from .dedup import IncomeRaceWindow, ProcessedNameCache
from .extract import extract_amount, extract_merchant, extract_sender
from .models import (
    Category,
    Channel,
    Direction,
    HistoricalTransaction,
    IngestResult,
    Outcome,
    PaymentReminder,
    RawSignal,
    Rejected,
    Suppressed,
    ScoredCategory,
    SignalRecord,
    SourceTag,
    SplitInfo,
    TransactionCandidate,
    TransactionFields,
)
from .pipeline import SignalPipeline
from .recommend import CategoryRecommendationScorer
from .split import build_split_info, infer_split_ratio
from .splitwise import SplitwiseNotificationParser
from .stores import (
    CategoryContext,
    InMemoryCategoryContext,
    InMemoryReminderStore,
    InMemoryTransactionStore,
    ReminderStore,
    StoreError,
    TransactionStore,
)

__all__ = [
    # API
    "create_pipeline",
    "suggest_categories",
    "SignalPipeline",
    # Core
    "extract_amount",
    "extract_merchant",
    "extract_sender",
    "infer_split_ratio",
    "build_split_info",
    "classify_sms",
    "classify_payment_notification",
    "SplitwiseNotificationParser",
    "IncomeRaceWindow",
    "ProcessedNameCache",
    "AccessibilityPaymentCorrelator",
    "CategoryRecommendationScorer",
    # Time and config
    "Clock",
    "SystemClock",
    "ManualClock",
    "Settings",
    # Stores
    "StoreError",
    "TransactionStore",
    "ReminderStore",
    "CategoryContext",
    "InMemoryTransactionStore",
    "InMemoryReminderStore",
    "InMemoryCategoryContext",
    # Models
    "Channel",
    "Direction",
    "SourceTag",
    "Outcome",
    "RawSignal",
    "SplitInfo",
    "TransactionCandidate",
    "Rejected",
    "Suppressed",
    "PaymentReminder",
    "IngestResult",
    "Category",
    "HistoricalTransaction",
    "TransactionFields",
    "ScoredCategory",
    "SignalRecord",
]
