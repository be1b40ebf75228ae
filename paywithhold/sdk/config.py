"""Configuration management for Pay Withhold.

Machine settings live in settings.json:

- rules_path: custom rule table YAML (overrides the bundled tables)
- tax_year: which bundled rule table year to load (default: newest)
- audit_log: path of the append-only audit log (JSON lines)
- audit_spool: when set, audit records are written ahead to this spool and
  delivered to audit_log from there (see audit.OutboxAuditSink)
- unknown_jurisdiction_policy: 'zero' (withhold nothing, default) or
  'reject' (fail the request)
- data_dir: custom data directory

Config directory resolution:
1. PAY_WITHHOLD_CONFIG_PATH environment variable (if set)
2. ~/.config/pay-withhold/ (XDG_CONFIG_HOME fallback)

Data paths follow the XDG base directory layout:
- Data: data_dir setting, else XDG_DATA_HOME/pay-withhold/ or ~/.local/share/pay-withhold/
"""

import json
import os
from pathlib import Path
from typing import Any, Optional


APP_NAME = "pay-withhold"
SETTINGS_FILENAME = "settings.json"
AUDIT_LOG_FILENAME = "tax_calculation_audit.jsonl"

UNKNOWN_JURISDICTION_POLICIES = ("zero", "reject")

# Settings recognized by `pay-withhold settings set`
KNOWN_SETTINGS = {
    "rules_path": "Custom rule table YAML file",
    "tax_year": "Bundled rule table year (e.g. 2024)",
    "audit_log": "Append-only audit log path",
    "audit_spool": "Write-ahead spool for audit records",
    "unknown_jurisdiction_policy": "'zero' or 'reject'",
    "data_dir": "Custom data directory",
}


class SettingsError(Exception):
    """Raised when a setting key or value is not accepted."""
    pass


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. PAY_WITHHOLD_CONFIG_PATH environment variable
    2. ~/.config/pay-withhold/ (XDG_CONFIG_HOME)
    """
    env_path = os.environ.get("PAY_WITHHOLD_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    settings = load_settings()
    return settings.get(key, default)


def validate_setting(key: str, value: Any) -> Any:
    """Check a setting before it is saved; returns the value to store.

    Raises:
        SettingsError: Unknown key or unacceptable value
    """
    if key not in KNOWN_SETTINGS:
        raise SettingsError(f"Unknown setting '{key}'. Known: {', '.join(sorted(KNOWN_SETTINGS))}")

    if key == "unknown_jurisdiction_policy" and value not in UNKNOWN_JURISDICTION_POLICIES:
        raise SettingsError(
            f"unknown_jurisdiction_policy must be one of {', '.join(UNKNOWN_JURISDICTION_POLICIES)}"
        )
    if key == "tax_year":
        if not str(value).isdigit() or len(str(value)) != 4:
            raise SettingsError(f"Invalid tax_year '{value}'. Must be 4 digits.")
        return int(value)
    if key in ("rules_path", "audit_log", "audit_spool", "data_dir"):
        return str(Path(value).expanduser())
    return value


def set_setting(key: str, value: Any) -> Path:
    """Validate and set a setting value in settings.json.

    Returns:
        Path to the saved settings file
    """
    settings = load_settings()
    settings[key] = validate_setting(key, value)
    return save_settings(settings)


def unset_setting(key: str) -> bool:
    """Remove a setting. Returns True if it was set."""
    settings = load_settings()
    if key not in settings:
        return False
    del settings[key]
    save_settings(settings)
    return True


def get_data_path() -> Path:
    """Get the data directory path.

    Uses the data_dir setting if present, else XDG_DATA_HOME/pay-withhold/.

    Returns:
        Path to the data directory (created if doesn't exist)
    """
    custom = get_setting("data_dir")
    if custom:
        data_path = Path(custom).expanduser()
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
        data_path = Path(xdg_data_home) / APP_NAME
    data_path.mkdir(parents=True, exist_ok=True)
    return data_path


def get_audit_log_path() -> Path:
    """Get the audit log path (audit_log setting, else data dir)."""
    custom = get_setting("audit_log")
    if custom:
        return Path(custom).expanduser()
    return get_data_path() / AUDIT_LOG_FILENAME


def get_audit_spool_path() -> Optional[Path]:
    """Get the audit spool path, or None if write-ahead delivery is off."""
    custom = get_setting("audit_spool")
    return Path(custom).expanduser() if custom else None


def get_unknown_jurisdiction_policy() -> str:
    """Policy for work locations missing from the rule table."""
    policy = get_setting("unknown_jurisdiction_policy", "zero")
    if policy not in UNKNOWN_JURISDICTION_POLICIES:
        raise SettingsError(f"Invalid unknown_jurisdiction_policy '{policy}' in {get_settings_path()}")
    return policy
