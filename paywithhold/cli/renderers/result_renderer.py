"""Rich renderer for withholding results.

Transforms SDK JSON output (camelCase TaxCalculationResult) into tables.
"""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table


def _money(value) -> str:
    return f"${value:,.2f}"


def render_result(console: Console, data: dict) -> None:
    """Render a calculation result.

    Args:
        console: Rich Console instance
        data: result.model_dump(mode="json", by_alias=True)
    """
    if "error" in data:
        console.print(Panel(
            f"[red]{data['error']}[/red]",
            title="Error",
            border_style="red"
        ))
        return

    _render_states(console, data.get("stateBreakdowns", []))
    _render_summary(console, data)


def _render_states(console: Console, breakdowns: list) -> None:
    """Render one row per work location."""
    table = Table(title="State withholding", box=box.SIMPLE_HEAVY)
    table.add_column("State")
    table.add_column("Allocated", justify="right")
    table.add_column("Taxable", justify="right")
    table.add_column("Withheld", justify="right")
    table.add_column("Top rate", justify="right")
    table.add_column("Note")

    for b in breakdowns:
        if not b.get("ruleConfigured", True):
            note = "[yellow]no rule - not withheld[/yellow]"
        elif b.get("reciprocityApplied"):
            note = "[cyan]reciprocity[/cyan]"
        else:
            note = ""
        table.add_row(
            b["jurisdictionCode"],
            _money(b["allocatedIncome"]),
            _money(b["taxableIncome"]),
            _money(b["taxWithheld"]),
            f"{b['effectiveRate'] * 100:.2f}%",
            note,
        )

    console.print(table)


def _render_summary(console: Console, data: dict) -> None:
    """Render totals through net pay."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("item")
    table.add_column("amount", justify="right")

    table.add_row("Gross pay", _money(data["grossPay"]))
    table.add_row(f"Federal income tax ({data['federalFilingStatus']})", _money(data["federalTax"]))
    table.add_row("State income tax", _money(data["totalStateTaxWithheld"]))
    if data.get("additionalWithholding"):
        table.add_row("Additional withholding", _money(data["additionalWithholding"]))
    table.add_row("Social Security", _money(data["socialSecurityTax"]))
    table.add_row("Medicare", _money(data["medicareTax"]))
    table.add_row("[bold]Total deductions[/bold]", f"[bold]{_money(data['totalDeductions'])}[/bold]")

    net = data["netPay"]
    net_style = "red" if net < 0 else "green"
    table.add_row("[bold]Net pay[/bold]", f"[bold {net_style}]{_money(net)}[/bold {net_style}]")

    console.print(Panel(table, title=f"Employee {data['employeeId']}", border_style="dim"))
