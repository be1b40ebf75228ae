"""Pay Withhold CLI - Command-line interface for multi-state withholding."""

import json

import click
from pydantic import ValidationError as SchemaError
from rich.console import Console

from paywithhold import __version__
from paywithhold.sdk import (
    PersistenceError,
    RulesNotFoundError,
    SettingsError,
    ValidationError,
    build_engine,
)

from .audit_commands import audit as audit_group
from .renderers.result_renderer import render_result
from .rules_commands import rules as rules_group
from .settings_commands import settings as settings_group


@click.group()
@click.version_option(version=__version__, prog_name="pay-withhold")
def cli():
    """Pay Withhold - multi-state payroll tax withholding.

    Computes federal, state, Social Security and Medicare withholding for
    one pay period across one or more work locations, and keeps an
    append-only audit log of every calculation.

    Settings are loaded from (in order):

    \b
    1. PAY_WITHHOLD_CONFIG_PATH environment variable
    2. ~/.config/pay-withhold/settings.json (XDG default)

    Run 'pay-withhold settings show' to see effective settings.
    """
    pass


cli.add_command(rules_group)
cli.add_command(audit_group)
cli.add_command(settings_group)


@cli.command("calc")
@click.argument("request_file", type=click.File("r"))
@click.option("--performed-by", default=None, help="User recorded on the audit entry (default: system).")
@click.option("--no-audit", is_flag=True, help="Compute only; do not write an audit record.")
@click.option("--rules", "rules_path", type=click.Path(exists=True, dir_okay=False),
              help="Rule table YAML to use instead of the bundled tables.")
@click.option("--year", "tax_year", help="Bundled rule table year (e.g. 2024).")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
              show_default=True, help="Output format.")
def calc(request_file, performed_by, no_audit, rules_path, tax_year, output_format):
    """Calculate withholding for a request.

    REQUEST_FILE is a JSON request body (camelCase, as accepted by the HTTP
    endpoint). Use '-' to read from stdin.

    Example:
        pay-withhold calc request.json --format json
    """
    try:
        payload = json.load(request_file)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {request_file.name}: {e}")

    try:
        engine = build_engine(rules_path=rules_path, tax_year=tax_year, audit=not no_audit)
    except (RulesNotFoundError, SettingsError) as e:
        raise click.ClickException(str(e))
    except SchemaError as e:
        raise click.ClickException(f"Invalid rule table (run 'pay-withhold rules validate'): {e.error_count()} error(s)")

    try:
        result = engine.calculate(payload, performed_by=performed_by)
    except ValidationError as e:
        raise click.ClickException(e.message)
    except PersistenceError as e:
        raise click.ClickException(f"{e.message} (result not confirmed; do not assume tax was withheld)")

    data = result.model_dump(mode="json", by_alias=True)
    if output_format == "json":
        click.echo(json.dumps(data, indent=2))
    else:
        render_result(Console(), data)


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host, port):
    """Run the HTTP API (POST /calculate-multi-state-tax)."""
    import uvicorn

    uvicorn.run("paywithhold.api.server:app", host=host, port=port)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
