# ruff: noqa: I001
"""CLI for the ``finance_insights`` package.

A Typer console over the analysis API for manual runs against exported
data. Each command reads CSV/JSON files, prints a JSON document to stdout
and reports failures on stderr with exit code 1. Environment variables
(``FINANCE_INSIGHTS_LOG_LEVEL``, ``FINANCE_INSIGHTS_SETTINGS``,
``FINANCE_INSIGHTS_TERM_TABLES``) may come from a local ``.env`` loaded with
``python-dotenv``.
"""

from __future__ import annotations

import dataclasses
import json
import sys
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer.models import OptionInfo

from .logging_setup import configure_logging, get_logger

_logger = get_logger("finance_insights.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, frozenset | set):
        return sorted(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _to_jsonable(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, list | tuple):
        return [_to_jsonable(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _to_jsonable(v) for k, v in obj.items()}
    return obj


def _emit(payload: Any) -> None:
    typer.echo(json.dumps(_to_jsonable(payload), default=_json_default, indent=2))


def _fail(message: str) -> typer.Exit:
    print(f"Error: {message}", file=sys.stderr)
    return typer.Exit(1)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise _fail(f"File not found: {path}") from None
    except PermissionError:
        raise _fail(f"Permission denied: {path}") from None


def _load_settings_or_exit(settings_path: Path | None):
    from .settings import load_settings

    try:
        return load_settings(settings_path)
    except (OSError, ValidationError) as e:
        raise _fail(f"invalid settings: {e}") from e


def _load_transactions_or_exit(csv_path: Path):
    from .normalizers import load_transactions_csv

    text = _read_text(csv_path)
    try:
        return load_transactions_csv(text)
    except ValueError as e:
        raise _fail(f"failed to parse '{csv_path}': {e}") from e


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Transaction-pattern analysis: recurring payments, alerts, correlation, "
    "reimbursement suggestions and workflow progress.",
)

# Module-level option objects keep calls out of parameter defaults.
CSV_PATH_OPTION: OptionInfo = typer.Option(
    "--csv-path",
    help="CSV file with date, amount and description columns.",
    dir_okay=False,
    file_okay=True,
)
SETTINGS_OPTION: OptionInfo = typer.Option(
    "--settings",
    help="JSON file overriding analysis thresholds (falls back to FINANCE_INSIGHTS_SETTINGS).",
    dir_okay=False,
)


@app.command("alerts")
def alerts_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    settings_path: Annotated[Path | None, SETTINGS_OPTION] = None,
    dismissed: Annotated[
        list[str] | None,
        typer.Option("--dismissed", help="Alert id to hide; repeat for several."),
    ] = None,
) -> None:
    """Print variance, spike, new-recurring and duplicate alerts."""

    from .anomalies import detect_anomalies, visible_alerts

    settings = _load_settings_or_exit(settings_path)
    transactions = _load_transactions_or_exit(csv_path)
    alerts = visible_alerts(detect_anomalies(transactions, settings), dismissed or ())
    _emit(alerts)


@app.command("subscriptions")
def subscriptions_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    settings_path: Annotated[Path | None, SETTINGS_OPTION] = None,
) -> None:
    """Print detected subscriptions with annual and monthly totals."""

    from .api import analyze_transactions

    settings = _load_settings_or_exit(settings_path)
    analysis = analyze_transactions(_load_transactions_or_exit(csv_path), settings)
    _emit(
        {
            "subscriptions": analysis.subscriptions,
            "totals": analysis.subscription_totals,
            "patterns": analysis.patterns,
        }
    )


@app.command("correlation")
def correlation_cmd(
    income_csv: Annotated[
        Path, typer.Option("--income-csv", help="CSV of income records.", dir_okay=False)
    ],
    expenses_csv: Annotated[
        Path, typer.Option("--expenses-csv", help="CSV of expense records.", dir_okay=False)
    ],
    settings_path: Annotated[Path | None, SETTINGS_OPTION] = None,
) -> None:
    """Correlate monthly income with monthly expenses."""

    from .api import analyze_income_vs_expenses
    from .models import InsufficientDataError

    settings = _load_settings_or_exit(settings_path)
    income = _load_transactions_or_exit(income_csv)
    expenses = _load_transactions_or_exit(expenses_csv)
    try:
        result = analyze_income_vs_expenses(income, expenses, settings)
    except InsufficientDataError as e:
        raise _fail(f"insufficient data: {e}") from e
    _emit(result)


@app.command("reimbursement")
def reimbursement_cmd(
    contracts_json: Annotated[
        Path,
        typer.Option("--contracts-json", help="JSON array of contract records.", dir_okay=False),
    ],
    category: Annotated[str, typer.Option("--category", help="Expense category.")],
    client_id: Annotated[
        str | None, typer.Option("--client-id", help="Only use this client's contracts.")
    ] = None,
) -> None:
    """Suggest whether an expense category is reimbursable under the client's contracts."""

    from .normalizers import load_contracts_json
    from .reimbursement import suggest_reimbursement
    from .settings import load_term_tables

    text = _read_text(contracts_json)
    try:
        contracts = load_contracts_json(text, client_id=client_id)
    except ValueError as e:
        raise _fail(f"failed to parse '{contracts_json}': {e}") from e
    try:
        tables = load_term_tables()
    except (OSError, ValidationError) as e:
        raise _fail(f"invalid term tables: {e}") from e
    _emit(suggest_reimbursement(category, contracts, tables))


@app.command("workflow")
def workflow_cmd(
    workflow_id: Annotated[str, typer.Argument(help="e.g. expense-capture, client-billing.")],
    counts_json: Annotated[
        Path,
        typer.Option("--counts-json", help="JSON object of raw counts.", dir_okay=False),
    ],
) -> None:
    """Resolve the current step of a guided workflow from raw counts."""

    from .workflows import resolve_workflow

    try:
        counts = json.loads(_read_text(counts_json), parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise _fail(f"failed to parse '{counts_json}': {e}") from e
    if not isinstance(counts, dict):
        raise _fail("counts JSON must be an object")
    _emit(resolve_workflow(workflow_id, counts))


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override FINANCE_INSIGHTS_LOG_LEVEL."),
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    already-set variables) and configures package logging before any
    subcommand runs.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    try:
        configure_logging(log_level)
    except ValueError as e:
        raise _fail(str(e)) from e


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    main()
