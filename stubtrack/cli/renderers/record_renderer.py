"""Rich renderer for parsed pay stubs.

Transforms SDK ParseResult output into formatted Rich tables.
"""

from decimal import Decimal
from typing import Dict, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stubtrack.sdk.schemas import ParseResult, TaxAmount
from stubtrack.sdk.summary import GoalProgress, PaycheckSummary


TAX_ROWS = [
    ("tax_federal", "Federal Income Tax"),
    ("tax_state", "State"),
    ("tax_city", "City"),
    ("tax_social_security", "Social Security"),
    ("tax_medicare", "Medicare"),
    ("tax_disability", "Disability"),
    ("tax_fli", "Family Leave"),
]


def render_parse_result(console: Console, result: ParseResult, title: Optional[str] = None) -> None:
    """Render one parsed stub as Rich tables.

    Args:
        console: Rich Console instance
        result: SDK output from parse_text()/parse_file()
        title: Optional heading (defaults to the file id)
    """
    for warning in result.warnings:
        console.print(Panel(
            f"[yellow]{warning}[/yellow]",
            title="Note",
            border_style="yellow"
        ))

    _render_record_table(console, result, title)
    if result.contributions:
        _render_contributions(console, result)


def _render_record_table(console: Console, result: ParseResult, title: Optional[str]) -> None:
    """Render main stub table."""
    record = result.record
    recon = result.reconciliation

    heading = title or record.file_id or "Pay Stub"
    check = f" #{record.check_number}" if record.check_number else ""
    source = "" if record.pay_date_source == "check_date" else f" [dim]({record.pay_date_source})[/dim]"

    table = Table(
        title=f"{heading}: {record.pay_date.isoformat()}{check}{source}",
        box=box.ROUNDED,
    )
    table.add_column("", style="bold", min_width=25)
    table.add_column("Current", justify="right", min_width=12)
    table.add_column("YTD", justify="right", min_width=12)

    table.add_row("Gross Pay", _fmt(record.gross.cur), _fmt(record.gross.ytd))
    table.add_row("", "", "")

    table.add_row("[bold]TAXES[/bold]", "", "")
    for field, label in TAX_ROWS:
        amount: Optional[TaxAmount] = getattr(record, field)
        if amount is not None:
            table.add_row(f"  {label}", _fmt(amount.cur), _fmt(amount.ytd))
    strategy = " (consolidated)" if record.tax_strategy == "consolidated" else ""
    table.add_row(
        f"  [dim]Total Taxes{strategy}[/dim]",
        f"[dim]{_fmt(record.taxes_cur)}[/dim]",
        f"[dim]{_fmt(record.taxes_ytd)}[/dim]",
    )
    table.add_row("", "", "")

    table.add_row("Invested (employee)", _fmt(recon.invested_employee_side), "")
    table.add_row("ESPP", _fmt(recon.espp), "")
    table.add_row(
        "[bold green]NET PAY[/bold green]",
        f"[bold green]{_fmt(record.net.cur)}[/bold green]",
        _fmt(record.net.ytd),
    )

    color = "green" if recon.balanced else "red"
    table.add_row(f"[{color}]Residual[/{color}]", f"[{color}]{_fmt(recon.residual)}[/{color}]", "")

    console.print(table)


def _render_contributions(console: Console, result: ParseResult) -> None:
    table = Table(title="Contributions", box=box.SIMPLE)
    table.add_column("Type")
    table.add_column("Employee", justify="right")
    table.add_column("Employer", justify="right")

    for c in result.contributions:
        table.add_row(c.type, _fmt(c.employee), _fmt(c.employer))

    console.print(table)


def render_summary(
    console: Console,
    summary: PaycheckSummary,
    espp_quarters: Dict[str, Decimal],
    progress: Optional[GoalProgress] = None,
) -> None:
    """Render paycheck totals, ESPP by quarter and optional goal progress."""
    table = Table(title=f"Paycheck Summary ({summary.stub_count} stubs)", box=box.ROUNDED)
    table.add_column("", style="bold", min_width=20)
    table.add_column("Total", justify="right", min_width=12)
    table.add_column("% of Gross", justify="right")

    table.add_row("Gross", _fmt(summary.gross), "")
    table.add_row("[red]Taxes[/red]", _fmt(summary.taxes), f"{summary.tax_rate}%")
    table.add_row("[yellow]Investments[/yellow]", _fmt(summary.investments), f"{summary.invest_rate}%")
    table.add_row("[green]After Investments[/green]", _fmt(summary.after_invest), f"{summary.after_invest_rate}%")
    table.add_row("ESPP", _fmt(summary.espp), "")
    table.add_row("Net Pay", _fmt(summary.net), "")
    console.print(table)

    quarters = Table(title="ESPP by Offering Period", box=box.SIMPLE)
    quarters.add_column("Quarter")
    quarters.add_column("Amount", justify="right")
    for label, amount in espp_quarters.items():
        quarters.add_row(label, _fmt(amount))
    console.print(quarters)

    if progress is not None:
        console.print(
            f"Goal: {_fmt(progress.invested_total)} of {_fmt(progress.goal)} invested "
            f"({progress.percent}%), {_fmt(progress.remaining)} to go"
        )


def _fmt(amount: Optional[Decimal]) -> str:
    """Format currency amount."""
    if amount is None:
        return "-"
    if abs(amount) < Decimal("0.005"):
        amount = Decimal("0")
    return f"${amount:,.2f}"
