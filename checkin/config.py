"""
config.py - Configuration Management
=====================================
This module handles loading and validating configuration from environment variables.
It reads settings from a .env file and makes them available to the rest of the application.

The Settings object is built once at start-up and handed to every component
that needs it (HTTP client, service, watcher). Nothing mutates it afterwards.

Environment Variables Used:
---------------------------
- WIX_API_KEY          : (Required for remote calls) Wix API key sent as the Authorization header
- WIX_SITE_ID          : (Required for remote calls) Wix site id sent as the wix-site-id header
- WIX_BASE_URL         : (Optional) Wix REST base URL (default: "https://www.wixapis.com")
- WIX_TIMEOUT_SEC      : (Optional) Request timeout in seconds (default: 20)
- WIX_PAGE_LIMIT       : (Optional) Page size used for member/plan queries (default: 10)
- SCANID_CSV_PATH      : (Optional) Path of the Scan-ID export CSV (default: "assets/scan-id-export.csv")
- SCANID_WATCH_POLLING : (Optional) Use a polling observer when watching the export (default: false)

Example .env file:
------------------
WIX_API_KEY=IST.eyJraWQiOiJQb3pIX2FDMiIs...
WIX_SITE_ID=3f1b7a0e-0000-4c4e-9b7d-1234567890ab
SCANID_CSV_PATH=C:/ScanID/export/scan-id-export.csv
"""

from dataclasses import dataclass
import os
from pathlib import Path
from dotenv import load_dotenv


DEFAULT_BASE_URL = "https://www.wixapis.com"
DEFAULT_CSV_PATH = "assets/scan-id-export.csv"

# Project root (config.py -> checkin/ -> project root)
PROJECT_ROOT = Path(__file__).resolve().parents[1]


# =============================================================================
# SETTINGS DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Settings:
    """Container for all application configuration values."""

    # Wix credentials (both needed before any remote call)
    api_key: str | None = None
    site_id: str | None = None

    # Wix REST base URL, no trailing slash
    base_url: str = DEFAULT_BASE_URL

    # How long to wait for API responses before timing out
    timeout_sec: int = 20

    # Page size for member directory and subscription queries
    page_limit: int = 10

    # Where the ID scanner drops its export
    scan_csv_path: Path = PROJECT_ROOT / DEFAULT_CSV_PATH

    # Polling observer instead of native file events (network shares)
    watch_polling: bool = False

    def require_api(self) -> None:
        """
        Make sure remote credentials are present.

        Raises:
            RuntimeError: If WIX_API_KEY or WIX_SITE_ID is missing
        """
        missing = [
            name for name, value in (("WIX_API_KEY", self.api_key), ("WIX_SITE_ID", self.site_id))
            if not value
        ]
        if missing:
            raise RuntimeError(
                f"{' and '.join(missing)} not set in environment. "
                "Please add them to your .env file."
            )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _clean(v: str | None) -> str | None:
    """
    Clean and normalize an environment variable value.

    Examples:
        _clean('  hello  ')     -> 'hello'
        _clean('"quoted"')      -> 'quoted'
        _clean("'quoted'")      -> 'quoted'
        _clean('')              -> None
        _clean(None)            -> None
    """
    if v is None:
        return None

    v = v.strip()

    # Remove surrounding quotes if present
    if len(v) >= 2 and ((v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'"))):
        v = v[1:-1].strip()

    return v if v else None


def _as_bool(v: str | None) -> bool:
    """Read an on/off flag: 1, true, yes or on (any case) mean True."""
    return (v or "").lower() in ("1", "true", "yes", "on")


def _as_int(name: str, default: int) -> int:
    """Read an integer variable, falling back to default when unset."""
    raw = _clean(os.getenv(name))
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _normalize_base_url(base: str | None) -> str:
    """Add a scheme if missing and drop the trailing slash."""
    base = base or DEFAULT_BASE_URL

    # "www.wixapis.com" -> "https://www.wixapis.com"
    if not base.startswith("http"):
        base = "https://" + base

    # Trailing slash removed so base_url + "/members/v1/..." always works
    return base.rstrip("/")


# =============================================================================
# MAIN CONFIGURATION LOADER
# =============================================================================

def load_settings(env_path: str | Path | None = None) -> Settings:
    """
    Load application configuration from environment variables.

    This function:
    1. Loads the .env file (project root unless env_path is given)
    2. Reads the WIX_* and SCANID_* environment variables
    3. Cleans and validates the values
    4. Returns a Settings object with all configuration

    Values already present in the process environment win over the .env file.

    Args:
        env_path: Optional explicit path of the .env file

    Returns:
        Settings: A dataclass containing all configuration values

    Raises:
        RuntimeError: If a numeric variable cannot be parsed
    """
    dotenv_path = Path(env_path) if env_path else PROJECT_ROOT / ".env"
    load_dotenv(dotenv_path=dotenv_path)

    csv_raw = _clean(os.getenv("SCANID_CSV_PATH")) or DEFAULT_CSV_PATH
    csv_path = Path(csv_raw).expanduser()
    if not csv_path.is_absolute():
        csv_path = PROJECT_ROOT / csv_path

    return Settings(
        api_key=_clean(os.getenv("WIX_API_KEY")),
        site_id=_clean(os.getenv("WIX_SITE_ID")),
        base_url=_normalize_base_url(_clean(os.getenv("WIX_BASE_URL"))),
        timeout_sec=_as_int("WIX_TIMEOUT_SEC", 20),
        page_limit=_as_int("WIX_PAGE_LIMIT", 10),
        scan_csv_path=csv_path,
        watch_polling=_as_bool(_clean(os.getenv("SCANID_WATCH_POLLING"))),
    )
