"""
Configuration module for Roster Watch.
"""

import json
import os
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from rosterwatch.model import ConfigError

STATE_DIR_ENV = "ROSTERWATCH_STATE_DIR"


class SourcesConfig(BaseModel):
    """
    Configuration for the upstream reports.
    """

    roster_url: str = "https://hub.masoncountywa.gov/sheriff/reports/incustdy.pdf"  # In-custody roster
    release_url: str = "https://hub.masoncountywa.gov/sheriff/reports/release_stats48hrs.pdf"  # 48h releases
    timeout: Optional[float] = None  # Request timeout in seconds (None = transport default)


class StorageConfig(BaseModel):
    """
    Configuration for the state store.
    """

    state_dir: str = "./data"  # Directory holding fingerprint, roster, queue and log
    lock_timeout: float = 30.0  # Seconds to wait for another run to finish
    keep_debug_copies: bool = False  # Save current.pdf / current_text.txt each run


class ExtractionConfig(BaseModel):
    """
    Configuration for roster extraction.
    """

    court_types: List[str] = ["SUPR", "DIST", "MUNI", "DOC"]  # Tokens marking a charge line
    strict: bool = False  # Fail the run when field extraction degrades
    max_failure_rate: float = 0.5  # Per-field miss rate tolerated in strict mode


class DiffConfig(BaseModel):
    """
    Configuration for snapshot diffing.
    """

    display_limit: int = 30  # Maximum records listed per category
    track_changes: bool = False  # Report field changes on bookings present in both snapshots


class ReconcileConfig(BaseModel):
    """
    Configuration for pending release reconciliation.
    """

    strategy: Literal["exact", "normalized", "fuzzy"] = "exact"
    fuzzy_cutoff: int = 92  # Minimum thefuzz score for a fuzzy name match
    max_pending_age_days: Optional[int] = None  # None keeps pending entries forever
    stale_policy: Literal["flag", "drop"] = "flag"


class LoggingConfig(BaseModel):
    """
    Configuration for logging.
    """

    level: str = "INFO"  # Logging level (DEBUG/INFO/WARN/ERROR)


class Config(BaseModel):
    """
    Main configuration.
    """

    sources: SourcesConfig = Field(default_factory=SourcesConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def apply_env_overrides(config: Config) -> Config:
    """
    Apply environment variable overrides to a configuration.

    Args:
        config: Configuration object

    Returns:
        The same configuration object
    """
    state_dir = os.environ.get(STATE_DIR_ENV)
    if state_dir:
        config.storage.state_dir = state_dir
    return config


def load_config(path: Optional[str] = None) -> Config:
    """
    Load configuration from a file.

    Args:
        path: Path to the configuration file

    Returns:
        Configuration object
    """
    if path:
        if not os.path.exists(path):
            raise ConfigError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            if path.endswith(".yaml") or path.endswith(".yml"):
                config_dict = yaml.safe_load(f)
            elif path.endswith(".json"):
                config_dict = json.load(f)
            else:
                raise ConfigError(f"Unsupported configuration file format: {path}")

        try:
            config = Config(**(config_dict or {}))
        except ValueError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e
        return apply_env_overrides(config)
    else:
        # Try to load from default locations
        default_locations = [
            "./config.yaml",
            "./config.yml",
            "./config.json",
            os.path.expanduser("~/.config/rosterwatch/config.yaml"),
        ]

        for loc in default_locations:
            if os.path.exists(loc):
                return load_config(loc)

        return apply_env_overrides(Config())
