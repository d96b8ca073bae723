"""
Centralized settings for the checkout pricing tool.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from ..engine.models import RuleTable
from ..rules.default_rules import default_rules
from ..rules.rule_loader import load_rule_table

logger = logging.getLogger(__name__)


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 4 levels up from this file
    return current.parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path

    # Rule table file (CSV, Excel or JSON); None means the built-in defaults
    rules_file: Optional[Path] = None

    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from CHECKOUT_* environment variables."""
        root = project_root or get_project_root()

        rules_file = os.environ.get('CHECKOUT_RULES_FILE') or None
        if rules_file:
            rules_file = Path(rules_file)
            if not rules_file.is_absolute():
                rules_file = root / rules_file

        return cls(
            project_root=root,
            rules_file=rules_file,
            log_level=os.environ.get('CHECKOUT_LOG_LEVEL', 'INFO'),
            log_format=os.environ.get('CHECKOUT_LOG_FORMAT', 'text'),
        )


def load_configured_rules(settings: Settings) -> RuleTable:
    """Rule table from settings.rules_file, or the default table."""
    if settings.rules_file is None:
        return default_rules()
    logger.info("Loading rule table from %s", settings.rules_file)
    return load_rule_table(settings.rules_file)


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
