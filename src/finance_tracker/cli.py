"""Command-line interface for the finance tracker."""

import argparse
import sys
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from finance_tracker import __version__
from finance_tracker.config import Config, load_config
from finance_tracker.errors import FinanceTrackerError
from finance_tracker.models.analysis import CardKind, DetailedReport, InsightCard
from finance_tracker.models.transaction import Transaction, TransactionType
from finance_tracker.output.csv_exporter import CSVExporter
from finance_tracker.parsers.csv_parser import CSVParser
from finance_tracker.processing.insights import InsightsEngine, format_category_name, format_money
from finance_tracker.processing.ledger import Ledger
from finance_tracker.processing.periods import Period, period_range_label
from finance_tracker.storage.json_file import JsonFileStorage
from finance_tracker.utils.date_utils import format_csv_datetime, parse_iso_datetime
from finance_tracker.utils.logging_config import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)

CARD_STYLES = {
    CardKind.SUCCESS: "green",
    CardKind.INFO: "cyan",
    CardKind.WARNING: "yellow",
}


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="finance-tracker",
        description="Record income and expenses, browse them and get spending insights",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s add income 1000000 "Salary" --category salary
  %(prog)s add expense 25000 "Lunch, with friend" --category food
  %(prog)s list --period month --page 2
  %(prog)s import statement.csv
  %(prog)s insights --details
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings.yaml (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Base config directory (default: ./config)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=None,
        help="Storage file (default: from settings or FINANCE_TRACKER_DATA)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v, -vv)",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    add = commands.add_parser("add", help="Record a transaction")
    add.add_argument("type", choices=[t.value for t in TransactionType])
    add.add_argument("amount", help="Non-negative amount, e.g. 50000 or 12.50")
    add.add_argument("description")
    add.add_argument("--category", default=None, help="Expense category (default: other)")
    add.add_argument("--at", default=None, help="ISO datetime (default: now)")

    list_cmd = commands.add_parser("list", help="Show a page of transactions, newest first")
    list_cmd.add_argument(
        "--period",
        choices=[p.value for p in Period],
        default=Period.ALL.value,
        help="Time window (default: all)",
    )
    list_cmd.add_argument("--page", type=int, default=1, help="Page number (default: 1)")

    update = commands.add_parser("update", help="Change fields of a transaction")
    update.add_argument("id", type=int)
    update.add_argument("--type", choices=[t.value for t in TransactionType], default=None)
    update.add_argument("--amount", default=None)
    update.add_argument("--description", default=None)
    update.add_argument("--category", default=None)
    update.add_argument("--at", default=None, help="ISO datetime")

    delete = commands.add_parser("delete", help="Delete a transaction")
    delete.add_argument("id", type=int)

    clear = commands.add_parser("clear", help="Delete all transactions")
    clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    commands.add_parser("balance", help="Show current balance, income and expense")

    import_cmd = commands.add_parser("import", help="Import transactions from CSV")
    import_cmd.add_argument("file", type=Path)

    export = commands.add_parser("export", help="Export all transactions as CSV")
    export.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output file (default: print to stdout)",
    )

    insights = commands.add_parser("insights", help="Analyze spending and show insight cards")
    insights.add_argument("--details", action="store_true", help="Also show the detailed report")
    insights.add_argument(
        "--no-delay",
        action="store_true",
        help="Skip the configured refresh delay",
    )

    return parser


def get_log_level(verbosity: int) -> str:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def open_ledger(config: Config, data_path: Path | None = None) -> Ledger:
    """Open the ledger backed by the configured storage file."""
    storage = JsonFileStorage(data_path or config.storage.path)
    return Ledger(storage, items_per_page=config.ledger.items_per_page)


def render_transactions(
    transactions: list[Transaction],
    config: Config,
    title: str,
    caption: str = "",
) -> Table:
    """Build a rich table for a page of transactions."""
    table = Table(title=title, caption=caption or None)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Date", no_wrap=True)
    table.add_column("Category")
    table.add_column("Description")
    table.add_column("Amount", justify="right", no_wrap=True)

    for txn in transactions:
        sign, style = ("+", "green") if txn.is_income else ("-", "red")
        table.add_row(
            str(txn.id),
            format_csv_datetime(txn.timestamp),
            format_category_name(txn.effective_category) if txn.is_expense else "",
            escape(txn.description),
            f"[{style}]{sign}{format_money(txn.amount, config.output)}[/{style}]",
        )
    return table


def render_card(card: InsightCard) -> Panel:
    style = CARD_STYLES[card.kind]
    metrics = "  ".join(f"{m.label}: [bold]{m.value}[/bold]" for m in card.metrics)
    body = escape(card.content) if not metrics else f"{escape(card.content)}\n[dim]{metrics}[/dim]"
    return Panel(
        body,
        title=f"[{style}]{card.title}[/{style}]",
        subtitle=card.priority.value,
        border_style=style,
        expand=False,
    )


def display_report(report: DetailedReport, config: Config) -> None:
    """Print a detailed analysis report."""
    overview = report.overview
    console.print("\n[bold]Financial Overview[/bold]")
    console.print(f"  Total transactions: {overview.total_transactions}")
    console.print(f"  Total income: {format_money(overview.total_income, config.output)}")
    console.print(f"  Total expenses: {format_money(overview.total_expense, config.output)}")
    console.print(f"  Net balance: {format_money(overview.net_balance, config.output)}")
    console.print(f"  Savings rate: {overview.savings_rate}%")
    console.print(f"  Health: {report.financial_health.value} - {report.health_advice}")

    console.print("\n[bold]Top Categories[/bold]")
    if not report.top_categories:
        console.print("  [dim]No expenses recorded[/dim]")
    for share in report.top_categories:
        console.print(f"  {escape(share.label)}: {share.percentage}%")

    console.print("\n[bold]Key Recommendations[/bold]")
    for rec in report.recommendations:
        style = CARD_STYLES[rec.kind]
        console.print(f"  [{style}]-[/{style}] {escape(rec.message)}")


def _parse_when(raw: str | None) -> datetime | None:
    return parse_iso_datetime(raw) if raw else None


def cmd_add(args: argparse.Namespace, ledger: Ledger, config: Config) -> int:
    txn = ledger.new_transaction(
        type=args.type,
        amount=args.amount,
        description=args.description,
        timestamp=_parse_when(args.at),
        category=args.category,
    )
    console.print(
        f"[green]Transaction added:[/green] #{txn.id} {txn.type.value} "
        f"{format_money(txn.amount, config.output)}"
    )
    return 0


def cmd_list(args: argparse.Namespace, ledger: Ledger, config: Config) -> int:
    period = Period(args.period)
    ledger.go_to_page(args.page, period)
    page = ledger.get_page(period)
    total = ledger.total_pages(period)

    label = period_range_label(period, transactions=ledger.get_all())
    if not page:
        console.print(f"[dim]{label}: no transactions found for this period.[/dim]")
        return 0

    console.print(
        render_transactions(
            page,
            config,
            title=f"Transactions ({period.value}: {label})",
            caption=f"Page {ledger.current_page} of {total}",
        )
    )
    return 0


def cmd_update(args: argparse.Namespace, ledger: Ledger, config: Config) -> int:
    fields: dict[str, object] = {}
    if args.type is not None:
        fields["type"] = args.type
    if args.amount is not None:
        fields["amount"] = args.amount
    if args.description is not None:
        fields["description"] = args.description
    if args.category is not None:
        fields["category"] = args.category
    if args.at is not None:
        fields["timestamp"] = parse_iso_datetime(args.at)

    if not fields:
        console.print("[yellow]Nothing to update.[/yellow]")
        return 0

    if ledger.update(args.id, **fields):
        console.print(f"[green]Transaction #{args.id} updated.[/green]")
    else:
        console.print(f"[dim]No transaction #{args.id}.[/dim]")
    return 0


def cmd_delete(args: argparse.Namespace, ledger: Ledger, config: Config) -> int:
    if ledger.delete(args.id):
        console.print(f"[green]Transaction #{args.id} deleted.[/green]")
    else:
        console.print(f"[dim]No transaction #{args.id}.[/dim]")
    return 0


def cmd_clear(args: argparse.Namespace, ledger: Ledger, config: Config) -> int:
    if not args.yes:
        prompt = f"[bold]Delete all {len(ledger)} transactions? [y/N]:[/bold] "
        if console.input(prompt).strip().lower() not in ("y", "yes"):
            console.print("[dim]Cancelled.[/dim]")
            return 0
    ledger.clear_all()
    console.print("[green]All transactions cleared.[/green]")
    return 0


def cmd_balance(args: argparse.Namespace, ledger: Ledger, config: Config) -> int:
    balance = ledger.balance()
    console.print(f"[bold]Current balance:[/bold] {format_money(balance.current, config.output)}")
    console.print(f"  Income:  [green]{format_money(balance.income, config.output)}[/green]")
    console.print(f"  Expense: [red]{format_money(balance.expense, config.output)}[/red]")
    return 0


def cmd_import(args: argparse.Namespace, ledger: Ledger, config: Config) -> int:
    with console.status(f"[bold green]Reading {args.file.name}..."):
        transactions = CSVParser().parse_file(args.file)

    if not transactions:
        console.print("[yellow]No valid transactions found in file.[/yellow]")
        return 0

    count = ledger.import_many(transactions)
    console.print(f"[green]Imported {count} transactions from {args.file.name}[/green]")
    return 0


def cmd_export(args: argparse.Namespace, ledger: Ledger, config: Config) -> int:
    if args.output is None:
        content = ledger.export_csv()
        console.print(content, markup=False, highlight=False, soft_wrap=True, end="")
        return 0

    path = CSVExporter().export(args.output, ledger.get_all())
    console.print(f"[green]Exported {len(ledger)} transactions to {path}[/green]")
    return 0


def cmd_insights(args: argparse.Namespace, ledger: Ledger, config: Config) -> int:
    engine = InsightsEngine(ledger, config)

    with console.status("[bold green]Analyzing financial data..."):
        if args.no_delay:
            engine.generate_insights()
        else:
            engine.schedule_refresh().join()

    for card in engine.insights:
        console.print(render_card(card))
    if not ledger.get_all():
        console.print("[dim]Add transactions to get insights.[/dim]")

    if args.details:
        display_report(engine.get_detailed_analysis(), config)
    return 0


COMMANDS = {
    "add": cmd_add,
    "list": cmd_list,
    "update": cmd_update,
    "delete": cmd_delete,
    "clear": cmd_clear,
    "balance": cmd_balance,
    "import": cmd_import,
    "export": cmd_export,
    "insights": cmd_insights,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    # Load environment variables from .env file (if it exists)
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = load_config(settings_path=args.config, config_dir=args.config_dir)
    except (FinanceTrackerError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    setup_logging(
        level=get_log_level(args.verbose) if args.verbose else config.logging.level,
        log_file=config.logging.file,
        console_output=args.verbose > 0,
    )

    try:
        ledger = open_ledger(config, args.data)
        return COMMANDS[args.command](args, ledger, config)
    except FinanceTrackerError as e:
        logger.warning(f"{args.command} failed: {e}")
        console.print(f"[red]Error: {e}[/red]")
        return 1
    except ValueError as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
