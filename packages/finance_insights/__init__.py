"""Public interface for the ``finance_insights`` package.

This module exposes the package's analysis functions and public models as
the stable import surface. There is no runtime logic here, only symbol
re-exports.
"""

from .anomalies import detect_anomalies, detect_duplicates, detect_variance, visible_alerts
from .api import analyze_income_vs_expenses, analyze_transactions
from .correlation import (
    analyze_correlation,
    analyze_monthly,
    correlation_strength,
    monthly_points,
)
from .models import (
    Alert,
    AlertType,
    Cadence,
    ContractTerms,
    CorrelationResult,
    Insight,
    InsightKind,
    InsufficientDataError,
    MonthlyPoint,
    Occurrence,
    RecurrencePattern,
    ReimbursementSuggestion,
    Severity,
    StatKind,
    StepDetail,
    StepStatus,
    SubscriptionTotals,
    SuggestionConfidence,
    Transaction,
    TransactionAnalysis,
    VendorGroup,
    WorkflowStat,
    WorkflowState,
)
from .normalizers import load_contracts_json, load_transactions_csv
from .recurrence import (
    classify_cadence,
    classify_recurrence,
    detect_new_recurring,
    detect_subscriptions,
    subscription_totals,
)
from .reimbursement import suggest_reimbursement
from .settings import AnalysisSettings, TermTables, load_settings, load_term_tables
from .vendors import group_by_vendor, normalize_vendor
from .workflows import WorkflowId, resolve_workflow

__all__ = [
    # API
    "analyze_correlation",
    "analyze_income_vs_expenses",
    "analyze_monthly",
    "analyze_transactions",
    "classify_cadence",
    "classify_recurrence",
    "correlation_strength",
    "detect_anomalies",
    "detect_duplicates",
    "detect_new_recurring",
    "detect_subscriptions",
    "detect_variance",
    "group_by_vendor",
    "load_contracts_json",
    "load_settings",
    "load_term_tables",
    "load_transactions_csv",
    "monthly_points",
    "normalize_vendor",
    "resolve_workflow",
    "subscription_totals",
    "suggest_reimbursement",
    "visible_alerts",
    # Models / types
    "Alert",
    "AlertType",
    "AnalysisSettings",
    "Cadence",
    "ContractTerms",
    "CorrelationResult",
    "Insight",
    "InsightKind",
    "InsufficientDataError",
    "MonthlyPoint",
    "Occurrence",
    "RecurrencePattern",
    "ReimbursementSuggestion",
    "Severity",
    "StatKind",
    "StepDetail",
    "StepStatus",
    "SubscriptionTotals",
    "SuggestionConfidence",
    "TermTables",
    "Transaction",
    "TransactionAnalysis",
    "VendorGroup",
    "WorkflowId",
    "WorkflowStat",
    "WorkflowState",
]
