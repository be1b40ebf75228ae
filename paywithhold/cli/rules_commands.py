"""Rule table commands."""

import click
from pydantic import ValidationError as SchemaError

from paywithhold.sdk import (
    RulesNotFoundError,
    get_available_years,
    get_setting,
    load_tax_rules,
    load_tax_rules_file,
)


def _load(rules_path, year):
    try:
        if rules_path:
            return load_tax_rules_file(rules_path)
        return load_tax_rules(year or get_setting("tax_year"))
    except RulesNotFoundError as e:
        raise click.ClickException(str(e))


@click.group()
def rules():
    """Inspect and validate withholding rule tables."""
    pass


@rules.command("years")
def rules_years():
    """List bundled rule table years."""
    years = get_available_years()
    if not years:
        click.echo("No bundled rule tables found.")
        return
    for year in years:
        click.echo(year)


@rules.command("show")
@click.argument("code", required=False)
@click.option("--year", help="Bundled rule table year.")
@click.option("--rules", "rules_path", type=click.Path(exists=True, dir_okay=False),
              help="Rule table YAML file.")
def rules_show(code, year, rules_path):
    """Show jurisdictions, or one jurisdiction's brackets.

    Examples:
        pay-withhold rules show
        pay-withhold rules show NJ --year 2024
    """
    table = _load(rules_path, year)

    if not code:
        click.echo(f"Rule table {table.year}: {len(table.jurisdictions)} jurisdiction(s)")
        for rule in table.jurisdictions:
            kind = "progressive" if len(rule.brackets) > 1 else ("flat" if rule.brackets else "no tax")
            partners = ",".join(sorted(rule.reciprocity_partners)) or "-"
            click.echo(f"  {rule.code:<5} {kind:<12} top {rule.flat_rate * 100:>6.2f}%  reciprocity: {partners}")
        return

    rule = table.get_jurisdiction(code)
    if rule is None:
        raise click.ClickException(f"No rule for '{code.upper()}' in {table.year} table")

    click.echo(f"{rule.code} - {rule.name}")
    click.echo(f"  Standard deduction: {rule.standard_deduction}")
    for status, amount in sorted(rule.standard_deduction_by_filing_status.items()):
        click.echo(f"    {status}: {amount}")
    click.echo(f"  Reciprocity partners: {', '.join(sorted(rule.reciprocity_partners)) or 'none'}")
    click.echo(f"  Nexus threshold: {rule.nexus_threshold}")
    if not rule.brackets:
        click.echo("  No income tax.")
        return
    click.echo("  Brackets:")
    for b in rule.brackets:
        upper = f"{b.max}" if b.max is not None else "and up"
        click.echo(f"    {b.min} - {upper}: {b.rate * 100}% + base {b.cumulative_base}")


@rules.command("validate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def rules_validate(path):
    """Validate a rule table YAML file.

    Checks bracket contiguity, cumulative bases, rates and deductions.
    """
    try:
        table = load_tax_rules_file(path)
    except SchemaError as e:
        click.echo(click.style(f"Invalid rule table: {path}", fg="red"))
        for err in e.errors():
            location = ".".join(str(part) for part in err.get("loc", ()))
            click.echo(f"  {location}: {err.get('msg')}")
        raise SystemExit(1)

    click.echo(click.style(
        f"OK: {path} ({table.year}, {len(table.jurisdictions)} jurisdictions)", fg="green"
    ))
