"""
Site Analyzer - Configuration
Hard-coded defaults for a single-page analysis run, with optional overrides
from a .env file / environment and from the CLI.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_SITE_URL = "https://cheffycooking.netlify.app"
DEFAULT_MAX_IMAGE_SIZE_KB = 100
DEFAULT_REPORT_FILE = "site-analysis-report.txt"
DEFAULT_REQUEST_TIMEOUT = 10
USER_AGENT = "SiteAnalyzer/1.0 (single-page site checker)"


@dataclass(frozen=True)
class AnalyzerConfig:
    site_url: str = DEFAULT_SITE_URL
    max_image_size_kb: int = DEFAULT_MAX_IMAGE_SIZE_KB
    report_file: str = DEFAULT_REPORT_FILE
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    user_agent: str = USER_AGENT

    @property
    def max_image_size_bytes(self) -> int:
        return self.max_image_size_kb * 1024


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def load_config(**overrides) -> AnalyzerConfig:
    """
    Build the run configuration.
    Precedence: keyword overrides (CLI) > environment / .env > defaults.
    Overrides set to None are ignored.
    """
    load_dotenv()

    values = {
        "site_url": os.environ.get("SITE_URL", "").strip() or DEFAULT_SITE_URL,
        "max_image_size_kb": _env_int("MAX_IMAGE_SIZE_KB", DEFAULT_MAX_IMAGE_SIZE_KB),
        "report_file": os.environ.get("REPORT_FILE", "").strip() or DEFAULT_REPORT_FILE,
        "request_timeout": _env_int("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return AnalyzerConfig(**values)
