from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses for the survey CSV importer.

Built by survey_importer.config.loader from the optional YAML file and the
environment (environment wins).
"""

__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_ROW_DELAY",
    "ApiConfig",
    "ImportConfig",
]

DEFAULT_API_URL = "https://api.zenloop.com"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_ROW_DELAY = 0.05


@dataclass(frozen=True)
class ApiConfig:
    """Connection settings for the survey platform relay.

    user/password are sent as HTTP Basic credentials. Empty values are allowed;
    the platform then answers 401 which is reported per row.
    """
    base_url: str = DEFAULT_API_URL
    user: str = ""
    password: str = ""
    timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def has_credentials(self) -> bool:
        return bool(self.user and self.password)


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    api: ApiConfig
    row_delay_seconds: float = DEFAULT_ROW_DELAY  # pause after every row (> 0)
    error_log_dir: str = "./logs"
