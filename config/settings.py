"""
Configuration Management

Loads environment variables and the published-sheet config for the catalog pipeline.
Uses python-dotenv for local development and environment variables for production.
"""

import json
import logging
import os
from typing import Dict

from dotenv import load_dotenv

from catalog_etl.exceptions import ConfigurationError

# Load .env file for local development
load_dotenv()

logger = logging.getLogger(__name__)


class Settings:
    """
    Application settings loaded from environment variables.
    """

    # Input Configuration
    SHEET_CONFIG_PATH: str = os.getenv("SHEET_CONFIG_PATH", "scripts/sheet.json")

    # Output Configuration
    ITEMS_OUTPUT_PATH: str = os.getenv("ITEMS_OUTPUT_PATH", "src/data/item.json")
    PLANS_OUTPUT_PATH: str = os.getenv("PLANS_OUTPUT_PATH", "src/data/plan.json")
    IMAGES_DIR: str = os.getenv("IMAGES_DIR", "src/assets/img/items")

    # HTTP Configuration
    # Raw values are converted in _validate_settings
    REQUEST_TIMEOUT = os.getenv("REQUEST_TIMEOUT", "30")
    MAX_WORKERS = os.getenv("MAX_WORKERS") or None

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: str = os.getenv("LOG_FILE", "logs/etl.log")

    def __init__(self, **overrides):
        """Apply explicit overrides (e.g. from the command line) and validate."""
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(type(self), key):
                raise ConfigurationError(f"Unknown setting: {key}")
            setattr(self, key, value)
        self._validate_settings()

    def _validate_settings(self) -> None:
        """
        Validate that all required settings are provided.

        Raises:
            ConfigurationError: If required settings are missing or malformed
        """
        required_fields = ["SHEET_CONFIG_PATH", "ITEMS_OUTPUT_PATH", "PLANS_OUTPUT_PATH", "IMAGES_DIR"]

        missing_fields = [
            field for field in required_fields
            if not getattr(self, field, None)
        ]

        if missing_fields:
            raise ConfigurationError(
                f"Missing required settings: {', '.join(missing_fields)}. "
                f"Please check your .env file."
            )

        try:
            self.REQUEST_TIMEOUT = float(self.REQUEST_TIMEOUT)
        except (TypeError, ValueError):
            raise ConfigurationError(f"REQUEST_TIMEOUT must be a number, got {self.REQUEST_TIMEOUT!r}")

        if self.REQUEST_TIMEOUT <= 0:
            raise ConfigurationError(f"REQUEST_TIMEOUT must be positive, got {self.REQUEST_TIMEOUT}")

        if self.MAX_WORKERS is not None:
            try:
                self.MAX_WORKERS = int(self.MAX_WORKERS)
            except (TypeError, ValueError):
                raise ConfigurationError(f"MAX_WORKERS must be an integer, got {self.MAX_WORKERS!r}")
            if self.MAX_WORKERS < 1:
                raise ConfigurationError(f"MAX_WORKERS must be at least 1, got {self.MAX_WORKERS}")

    def __repr__(self) -> str:
        return (
            f"Settings("
            f"SHEET_CONFIG_PATH={self.SHEET_CONFIG_PATH}, "
            f"ITEMS_OUTPUT_PATH={self.ITEMS_OUTPUT_PATH}, "
            f"PLANS_OUTPUT_PATH={self.PLANS_OUTPUT_PATH}, "
            f"IMAGES_DIR={self.IMAGES_DIR}"
            f")"
        )


class SheetConfig:
    """
    Published spreadsheet identity and the tab name -> gid mapping.
    """

    def __init__(self, spreadsheet_id: str, sheets: Dict[str, str]):
        self.spreadsheet_id = spreadsheet_id
        self.sheets = sheets

    @classmethod
    def from_dict(cls, data) -> "SheetConfig":
        """
        Build a config from parsed JSON.

        Raises:
            ConfigurationError: If spreadsheet_id or sheets are missing or malformed
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Sheet configuration must be a JSON object")

        spreadsheet_id = data.get("spreadsheet_id")
        if not spreadsheet_id or not isinstance(spreadsheet_id, str):
            raise ConfigurationError("Invalid or missing spreadsheet_id in configuration")

        sheets = data.get("sheets")
        if not sheets or not isinstance(sheets, dict):
            raise ConfigurationError("Invalid or missing sheets configuration")

        gids = {}
        for name, gid in sheets.items():
            # bool is an int subclass but never a valid gid
            if isinstance(gid, bool) or not isinstance(gid, (str, int)) or str(gid).strip() == "":
                raise ConfigurationError(f"Invalid gid for sheet '{name}': {gid!r}")
            gids[name] = str(gid).strip()

        return cls(spreadsheet_id.strip(), gids)

    @classmethod
    def load(cls, path: str) -> "SheetConfig":
        """
        Read and validate the sheet config file.

        Raises:
            ConfigurationError: If the file cannot be read or parsed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ConfigurationError(f"Failed to read sheet config {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Failed to parse sheet config {path}: {e}") from e

        config = cls.from_dict(data)
        logger.info(f"Loaded sheet config with {len(config.sheets)} tabs from {path}")
        return config

    def __repr__(self) -> str:
        return f"SheetConfig(spreadsheet_id={self.spreadsheet_id}, sheets={list(self.sheets)})"
