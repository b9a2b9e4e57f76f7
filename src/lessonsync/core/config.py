"""Configuration loaded from the process environment.

Required settings hold the site login, the OAuth client and the target
Drive folder. Optional settings tune timeouts and the browser.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from lessonsync.core.errors import ConfigurationError
from lessonsync.core.types import OAuthCredentials, SiteCredentials

DEFAULT_SITE_URL = "https://helpspeaking.kr"
DEFAULT_HTTP_TIMEOUT = 60.0  # seconds
DEFAULT_BROWSER_TIMEOUT = 20.0  # seconds

# Checked in this order; the first missing key is reported
REQUIRED_KEYS = (
    "HELPSPEAKING_USERNAME",
    "HELPSPEAKING_PASSWORD",
    "GOOGLE_OAUTH_CLIENT_ID",
    "GOOGLE_OAUTH_CLIENT_SECRET",
    "GOOGLE_OAUTH_REFRESH_TOKEN",
    "GOOGLE_DRIVE_FOLDER_ID",
)

OPTIONAL_KEYS = (
    "LESSONSYNC_HTTP_TIMEOUT",
    "LESSONSYNC_BROWSER_TIMEOUT",
    "LESSONSYNC_SITE_URL",
    "LESSONSYNC_HEADLESS",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AppConfig:
    """Settings for one transfer run.

    Attributes:
        site_username: Login for the source site.
        site_password: Password for the source site.
        oauth_client_id: Google OAuth client id.
        oauth_client_secret: Google OAuth client secret.
        oauth_refresh_token: Long-lived refresh token.
        drive_folder_id: Destination folder id.
        http_timeout: Timeout for each HTTP operation in seconds.
        browser_timeout: Wait limit for page markers in seconds.
        site_url: Landing page of the source site.
        headless: Whether to run the browser without a window.
    """

    site_username: str
    site_password: str = field(repr=False)
    oauth_client_id: str
    oauth_client_secret: str = field(repr=False)
    oauth_refresh_token: str = field(repr=False)
    drive_folder_id: str
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    browser_timeout: float = DEFAULT_BROWSER_TIMEOUT
    site_url: str = DEFAULT_SITE_URL
    headless: bool = True

    def __post_init__(self) -> None:
        """Normalize site URL."""
        object.__setattr__(self, "site_url", self.site_url.rstrip("/"))

    @property
    def site_credentials(self) -> SiteCredentials:
        """Get the source site login."""
        return SiteCredentials(username=self.site_username, password=self.site_password)

    @property
    def oauth_credentials(self) -> OAuthCredentials:
        """Get the OAuth token exchange credentials."""
        return OAuthCredentials(
            client_id=self.oauth_client_id,
            client_secret=self.oauth_client_secret,
            refresh_token=self.oauth_refresh_token,
        )


def _read_required(environ: Mapping[str, str], key: str) -> str:
    value = environ.get(key)
    if value is None or not value.strip():
        raise ConfigurationError(key, f"Missing required setting: {key}")
    return value.strip()


def _read_float(environ: Mapping[str, str], key: str, default: float) -> float:
    value = environ.get(key, "").strip()
    if not value:
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ConfigurationError(key, f"Invalid number for {key}: {value!r}") from None
    if parsed <= 0:
        raise ConfigurationError(key, f"{key} must be positive, got {value!r}")
    return parsed


def _read_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    value = environ.get(key, "").strip().lower()
    if not value:
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(key, f"Invalid boolean for {key}: {value!r}")


def load_config(environ: Mapping[str, str]) -> AppConfig:
    """Load configuration from environment variables.

    Args:
        environ: Environment mapping (usually os.environ).

    Returns:
        Loaded configuration with values stripped of whitespace.

    Raises:
        ConfigurationError: If a required key is missing or an optional
            key cannot be parsed. The error names the key.
    """
    required = {key: _read_required(environ, key) for key in REQUIRED_KEYS}
    return AppConfig(
        site_username=required["HELPSPEAKING_USERNAME"],
        site_password=required["HELPSPEAKING_PASSWORD"],
        oauth_client_id=required["GOOGLE_OAUTH_CLIENT_ID"],
        oauth_client_secret=required["GOOGLE_OAUTH_CLIENT_SECRET"],
        oauth_refresh_token=required["GOOGLE_OAUTH_REFRESH_TOKEN"],
        drive_folder_id=required["GOOGLE_DRIVE_FOLDER_ID"],
        http_timeout=_read_float(environ, "LESSONSYNC_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        browser_timeout=_read_float(
            environ, "LESSONSYNC_BROWSER_TIMEOUT", DEFAULT_BROWSER_TIMEOUT
        ),
        site_url=environ.get("LESSONSYNC_SITE_URL", "").strip() or DEFAULT_SITE_URL,
        headless=_read_bool(environ, "LESSONSYNC_HEADLESS", True),
    )
