"""Configuration file management for cashmap."""

import os
import tomllib
from pathlib import Path
from typing import Any

import tomli_w

from cashmap.domain.imports import CsvMapping
from cashmap.integrations.gemini import DEFAULT_MODEL

DEFAULT_API_KEY_ENV = "GEMINI_API_KEY"


def get_xdg_config_home() -> Path:
    """Get XDG config directory, with fallback to ~/.config."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config)
    return Path.home() / ".config"


def get_config_path() -> Path:
    """Get the config file path (XDG compliant).

    Returns:
        Path to the config file.
    """
    return get_xdg_config_home() / "cashmap" / "config.toml"


def default_config() -> dict[str, Any]:
    return {
        "currency": "USD",
        "classifier": {
            "model": DEFAULT_MODEL,
            "api_key_env": DEFAULT_API_KEY_ENV,
        },
        "sources": [],
    }


def create_default_config(config_path: Path | None = None) -> None:
    """Create default config file with secure permissions.

    Args:
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(default_config(), f)

    os.chmod(config_path, 0o600)


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If config file doesn't exist.
    """
    if config_path is None:
        config_path = get_config_path()

    with open(config_path, "rb") as f:
        return tomllib.load(f)


def load_config_or_default(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration, falling back to defaults if there is no file yet."""
    try:
        return load_config(config_path)
    except FileNotFoundError:
        return default_config()


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Save configuration to TOML file.

    Args:
        config: Configuration dictionary.
        config_path: Path to config file. If None, uses default location.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    os.chmod(config_path, 0o600)


def get_currency(config: dict[str, Any]) -> str:
    return str(config.get("currency", "USD"))


def get_classifier_settings(config: dict[str, Any]) -> tuple[str, str | None]:
    """Resolve the classifier model and API key.

    Args:
        config: Configuration dictionary.

    Returns:
        Tuple of (model, api_key). api_key is None if the configured
        environment variable is not set.
    """
    classifier = config.get("classifier", {})
    model = classifier.get("model", DEFAULT_MODEL)
    api_key_env = classifier.get("api_key_env", DEFAULT_API_KEY_ENV)
    return model, os.environ.get(api_key_env)


def get_source(name: str, config_path: Path | None = None) -> dict[str, Any] | None:
    """Get a source configuration by name.

    Args:
        name: Source name.
        config_path: Path to config file. If None, uses default location.

    Returns:
        Source configuration dictionary or None if not found.
    """
    config = load_config(config_path)

    sources = config.get("sources", [])
    for source in sources:
        if isinstance(source, dict) and source.get("name") == name:
            return source

    return None


def add_source(source: dict[str, Any], config_path: Path | None = None) -> None:
    """Add or update a source configuration.

    Args:
        source: Source configuration dictionary.
        config_path: Path to config file. If None, uses default location.
    """
    config = load_config_or_default(config_path)

    sources = config.get("sources", [])
    source_name = source.get("name")

    for i, existing_source in enumerate(sources):
        if existing_source.get("name") == source_name:
            sources[i] = source
            break
    else:
        sources.append(source)

    config["sources"] = sources
    save_config(config, config_path)


def mapping_from_source(source: dict[str, Any]) -> CsvMapping:
    """Build a CsvMapping from a stored source entry (missing keys use defaults)."""
    defaults = CsvMapping()
    return CsvMapping(
        date_index=int(source.get("date_index", defaults.date_index)),
        description_index=int(source.get("description_index", defaults.description_index)),
        mode=source.get("mode", defaults.mode),
        amount_index=int(source.get("amount_index", defaults.amount_index)),
        debit_index=int(source.get("debit_index", defaults.debit_index)),
        credit_index=int(source.get("credit_index", defaults.credit_index)),
    )


def source_from_mapping(name: str, mapping: CsvMapping, account: str | None = None) -> dict[str, Any]:
    """Build a source entry for the config file from a CsvMapping."""
    source: dict[str, Any] = {
        "name": name,
        "type": "csv",
        "mode": mapping.mode,
        "date_index": mapping.date_index,
        "description_index": mapping.description_index,
        "amount_index": mapping.amount_index,
        "debit_index": mapping.debit_index,
        "credit_index": mapping.credit_index,
    }
    if account:
        source["account"] = account
    return source
