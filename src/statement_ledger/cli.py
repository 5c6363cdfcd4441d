"""Command-line interface for statement ledger."""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn
from rich.table import Table

from statement_ledger import __version__
from statement_ledger.config import Config, ConfigError, load_config
from statement_ledger.errors import LedgerError
from statement_ledger.extraction.client import ExtractionClient
from statement_ledger.models.report import AggregatedStats
from statement_ledger.models.transaction import TransactionRecord
from statement_ledger.processing.analytics import (
    SORT_FIELDS,
    compute_stats,
    generate_summary_text,
    sort_transactions,
)
from statement_ledger.processing.pipeline import MergeReport, StatementPipeline
from statement_ledger.processing.progress import ProgressState
from statement_ledger.utils.decimal_utils import format_currency
from statement_ledger.utils.logging_config import get_logger, setup_logging

# Load environment variables from .env file (if it exists)
load_dotenv()

console = Console()
logger = get_logger(__name__)

# Seconds between progress refreshes
POLL_INTERVAL = 0.1

# Rows shown in the terminal table; exports always hold every row
MAX_TABLE_ROWS = 100


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="statement-ledger",
        description=(
            "Extract transactions from bank statement images and PDFs "
            "into an editable ledger"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s statement.pdf
  %(prog)s page1.jpg page2.jpg -o ledger.xlsx --csv
  %(prog)s march.pdf april.pdf -o ledger.csv --sort-by debit --descending
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        metavar="FILE",
        help="Statement files (PNG, JPG, WEBP, PDF or TXT). The first starts the session.",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output file path, .xlsx or .csv (default: output/statement_YYYYMMDD_HHMMSS.xlsx)",
    )

    parser.add_argument(
        "--csv",
        action="store_true",
        help="Also write a CSV file next to the output",
    )

    parser.add_argument(
        "--xlsx",
        action="store_true",
        help="Also write an Excel workbook next to the output",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to settings.yaml (default: config/settings.yaml)",
    )

    parser.add_argument(
        "--api-key-env",
        default=None,
        metavar="NAME",
        help="Environment variable holding the API key (default: ANTHROPIC_API_KEY)",
    )

    parser.add_argument(
        "--check-key",
        action="store_true",
        help="Verify the API key with a minimal request before processing",
    )

    parser.add_argument(
        "--model",
        default=None,
        help="Model used for extraction",
    )

    parser.add_argument(
        "--sort-by",
        choices=SORT_FIELDS,
        default=None,
        help="Sort transactions by this field in the table and exports",
    )

    parser.add_argument(
        "--descending",
        action="store_true",
        help="Sort in descending order",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG)",
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


def generate_default_output_path() -> Path:
    """Generate default output path with timestamp.

    Returns:
        Path with format output/statement_YYYYMMDD_HHMMSS.xlsx
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(f"output/statement_{timestamp}.xlsx")


def create_progress() -> Progress:
    """Create a progress display.

    Returns:
        Rich Progress instance.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
    )


def describe_progress(state: ProgressState) -> str:
    """One-line description of pipeline progress for the progress bar."""
    if not state.current_file:
        return "Starting..."
    if not state.is_busy and state.message:
        return state.message
    position = min(state.files_done + 1, state.files_total)
    text = f"[{position}/{state.files_total}] {state.current_file}"
    return f"{text}: {state.message}" if state.message else text


async def run_with_progress(pipeline: StatementPipeline, files: Sequence[Path]) -> MergeReport:
    """Process files while polling the pipeline's progress handle.

    Args:
        pipeline: Pipeline to run.
        files: Input files, the first one starting the session.

    Returns:
        MergeReport of the run.
    """
    with create_progress() as progress:
        task_id: TaskID = progress.add_task("Starting...", total=100)
        job = asyncio.create_task(pipeline.process_files(files))

        while not job.done():
            progress.update(
                task_id,
                completed=pipeline.progress.overall_percent,
                description=describe_progress(pipeline.progress),
            )
            await asyncio.wait({job}, timeout=POLL_INTERVAL)

        progress.update(
            task_id,
            completed=pipeline.progress.overall_percent,
            description=describe_progress(pipeline.progress),
        )
        return job.result()


async def process(pipeline: StatementPipeline, files: Sequence[Path], check_key: bool = False) -> MergeReport:
    """Run the pipeline, first verifying the credential when asked."""
    if check_key:
        await pipeline.client.validate_credential()
        console.print("[green]API key accepted[/green]")
    return await run_with_progress(pipeline, files)


def display_transactions(transactions: Sequence[TransactionRecord], config: Config) -> None:
    """Print the transaction table."""
    symbol = config.output.currency_symbol
    places = config.output.decimal_places

    table = Table(title=f"Transactions ({len(transactions)})", show_lines=False)
    table.add_column("Date", no_wrap=True)
    table.add_column("Description", overflow="fold")
    table.add_column("Debit", justify="right", style="red")
    table.add_column("Credit", justify="right", style="green")
    table.add_column("Balance", justify="right")
    table.add_column("Category")
    table.add_column("Type")

    for txn in transactions[:MAX_TABLE_ROWS]:
        table.add_row(
            txn.date or "-",
            txn.description,
            format_currency(txn.debit, symbol, places) if txn.debit is not None else "",
            format_currency(txn.credit, symbol, places) if txn.credit is not None else "",
            format_currency(txn.balance, symbol, places),
            txn.category,
            txn.cost_type.value,
        )

    console.print(table)
    if len(transactions) > MAX_TABLE_ROWS:
        console.print(f"[dim]... and {len(transactions) - MAX_TABLE_ROWS} more (see export)[/dim]")


def display_summary(report: MergeReport, stats: AggregatedStats, config: Config) -> None:
    """Print the statistics summary and any skipped files."""
    symbol = config.output.currency_symbol
    places = config.output.decimal_places
    state = report.state

    console.print("\n[bold]Statement Summary[/bold]")
    console.print(f"  Files processed: {state.files_processed}")
    console.print(f"  Transactions: {stats.transaction_count}")
    console.print(f"  Period: {state.period or stats.period_display} ({stats.period_days} days)")
    console.print(f"  Total debit: {format_currency(stats.total_debit, symbol, places)}")
    console.print(f"  Total credit: {format_currency(stats.total_credit, symbol, places)}")
    flow_style = "green" if stats.is_positive else "red"
    console.print(
        f"  Net flow: [{flow_style}]{format_currency(stats.net_flow, symbol, places)}[/{flow_style}]"
    )
    console.print(f"  Daily burn rate: {format_currency(stats.daily_burn_rate, symbol, places)}")
    breakdown = stats.cost_breakdown
    console.print(
        f"  Fixed / variable: {format_currency(breakdown.fixed.total, symbol, places)} "
        f"({breakdown.fixed_percent:.1f}%) / "
        f"{format_currency(breakdown.variable.total, symbol, places)} "
        f"({breakdown.variable_percent:.1f}%)"
    )

    summary = generate_summary_text(stats, state.bank_name, state.period, symbol)
    console.print(Panel(summary, title=state.bank_name or "Summary", expand=False))

    if report.failures:
        console.print(f"\n[yellow]Skipped files ({len(report.failures)}):[/yellow]")
        for failure in report.failures:
            console.print(f"  - {failure.source}: {failure.error.user_message}")


def write_outputs(
    args: argparse.Namespace,
    config: Config,
    report: MergeReport,
    stats: AggregatedStats,
    transactions: Sequence[TransactionRecord],
) -> list[Path]:
    """Write the requested export files.

    Returns:
        Paths of the written files.
    """
    from statement_ledger.output import CSVExporter, ExcelWriter

    output: Path = args.output
    is_csv_output = output.suffix.lower() == ".csv"
    written = []

    if is_csv_output or args.csv:
        csv_path = output if is_csv_output else output.with_suffix(".csv")
        written.append(CSVExporter(config).export(csv_path, report.state, transactions))

    if not is_csv_output or args.xlsx:
        xlsx_path = output.with_suffix(".xlsx")
        written.append(ExcelWriter(config).write(xlsx_path, report.state, stats, transactions))

    return written


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    # Set up logging
    log_level = get_log_level(args.verbose) if args.verbose else config.logging.level
    setup_logging(level=log_level, log_file=config.logging.file, console_output=args.verbose > 0)

    # Apply CLI overrides
    if args.api_key_env:
        config.extraction.api_key_env = args.api_key_env
    if args.model:
        config.extraction.model = args.model

    if args.output is None:
        args.output = generate_default_output_path()
        console.print(f"[dim]Using default output: {args.output}[/dim]")

    client = ExtractionClient(config.extraction.client_config())
    if not client.is_available:
        console.print(
            f"[red]Error: API key not found. Set {config.extraction.api_key_env} "
            f"in the environment or a .env file.[/red]"
        )
        return 1

    console.print(f"[bold]Statement Ledger v{__version__}[/bold]\n")

    pipeline = StatementPipeline(client, config=config)
    try:
        report = asyncio.run(process(pipeline, args.files, check_key=args.check_key))
    except LedgerError as e:
        logger.error(f"Processing failed: {e}")
        console.print(f"[red]Error: {e.user_message}[/red]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        return 1

    state = report.state
    transactions = list(state.transactions)
    if args.sort_by:
        transactions = sort_transactions(transactions, args.sort_by, args.descending)

    stats = compute_stats(state.transactions)
    display_transactions(transactions, config)
    display_summary(report, stats, config)

    try:
        written = write_outputs(args, config, report, stats, transactions)
    except OSError as e:
        logger.error(f"Export failed: {e}")
        console.print(f"[red]Error: Could not write output: {e}[/red]")
        return 1

    for path in written:
        console.print(f"[green]Output written to {path}[/green]")

    if args.verbose:
        console.print(f"\n[dim]{client.get_usage_summary()}[/dim]")

    return 0


if __name__ == "__main__":
    sys.exit(main())
