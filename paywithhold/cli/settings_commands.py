"""Settings CLI commands for Pay Withhold.

Manages settings.json - rule table selection, audit paths, policies.
"""

import click

from paywithhold.sdk import (
    KNOWN_SETTINGS,
    SettingsError,
    get_audit_log_path,
    get_audit_spool_path,
    get_settings_path,
    get_unknown_jurisdiction_policy,
    load_settings,
    set_setting,
    unset_setting,
)


@click.group()
def settings():
    """Manage settings (settings.json).

    \b
    Available settings:
    - rules_path: custom rule table YAML file
    - tax_year: bundled rule table year
    - audit_log: append-only audit log path
    - audit_spool: write-ahead spool for audit records
    - unknown_jurisdiction_policy: 'zero' or 'reject'
    - data_dir: custom data directory path
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their effective values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
    else:
        click.echo("Current settings:")
        for key, value in current.items():
            click.echo(f"  {key}: {value}")

    click.echo()
    click.echo("Effective:")
    click.echo(f"  audit_log: {get_audit_log_path()}")
    spool = get_audit_spool_path()
    click.echo(f"  audit_spool: {spool if spool else '(off)'}")
    try:
        click.echo(f"  unknown_jurisdiction_policy: {get_unknown_jurisdiction_policy()}")
    except SettingsError as e:
        click.echo(click.style(f"  unknown_jurisdiction_policy: {e}", fg="red"))


@settings.command("set")
@click.argument("key", type=click.Choice(sorted(KNOWN_SETTINGS)))
@click.argument("value")
def settings_set(key, value):
    """Set KEY to VALUE.

    Examples:
        pay-withhold settings set tax_year 2024
        pay-withhold settings set unknown_jurisdiction_policy reject
    """
    try:
        path = set_setting(key, value)
    except SettingsError as e:
        raise click.ClickException(str(e))
    click.echo(f"Set {key} in {path}")


@settings.command("unset")
@click.argument("key", type=click.Choice(sorted(KNOWN_SETTINGS)))
def settings_unset(key):
    """Remove KEY, reverting to the default."""
    if unset_setting(key):
        click.echo(f"Cleared {key}.")
    else:
        click.echo(f"{key} was not set.")
