"""Configuration management for jsglobals.

Loads environment variables (optionally from a .env file) and provides
centralized config access for the command line front end. The detection
engine itself takes no configuration.
"""
import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

__version__ = "1.0.0"

OUTPUT_FORMATS = ('table', 'json', 'plain')
ARROW_ARGUMENTS_MODES = ('report', 'ignore')
TRUE_VALUES = ('1', 'true', 'yes', 'on')


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self):
        """Initialize config by loading the project .env file, else one from the working directory."""
        env_path = Path(__file__).parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)
        else:
            load_dotenv()

        self._validate()

    def _validate(self):
        """Validate enumerated settings.

        Raises:
            ValueError: If JSGLOBALS_FORMAT or JSGLOBALS_ARROW_ARGUMENTS has an unknown value
        """
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"JSGLOBALS_FORMAT must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got {self.output_format!r}"
            )
        mode = os.getenv("JSGLOBALS_ARROW_ARGUMENTS", "report").lower()
        if mode not in ARROW_ARGUMENTS_MODES:
            raise ValueError(
                f"JSGLOBALS_ARROW_ARGUMENTS must be one of {', '.join(ARROW_ARGUMENTS_MODES)}, "
                f"got {mode!r}"
            )

    @property
    def report_arrow_arguments(self) -> bool:
        """Whether `arguments` inside a top-level arrow function is reported.

        Returns:
            False when JSGLOBALS_ARROW_ARGUMENTS is 'ignore'
        """
        return os.getenv("JSGLOBALS_ARROW_ARGUMENTS", "report").lower() == "report"

    @property
    def ignored_names(self) -> List[str]:
        """Names the CLI drops from its report (JSGLOBALS_IGNORE, comma separated)."""
        raw = os.getenv("JSGLOBALS_IGNORE", "")
        return [name.strip() for name in raw.split(",") if name.strip()]

    @property
    def output_format(self) -> str:
        return os.getenv("JSGLOBALS_FORMAT", "table").lower()

    @property
    def sort_results(self) -> bool:
        return os.getenv("JSGLOBALS_SORT", "false").lower() in TRUE_VALUES


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the cached Config so the next get_config() rereads the environment."""
    global _config
    _config = None
