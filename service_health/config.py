import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

from service_health.errors import ConfigurationError

REQUEST_TIMEOUT_SECONDS: int = 30
MAX_RETRIES: int = 3
RETRY_BASE_DELAY_SECONDS: int = 2   # delay = base * 2^n, capped at MAX_RETRY_DELAY_SECONDS
MAX_RETRY_DELAY_SECONDS: int = 30
MAX_CONCURRENT_REQUESTS: int = 10

HISTORY_WINDOW_DAYS: int = 30
HISTORY_LIMIT: int = 50
HISTORY_POST_LIMIT: int = 5

DEFAULT_OUTPUT_PATH: str = "data.json"

TOKEN_URL_TEMPLATE: str = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
GRAPH_SCOPE: str = "https://graph.microsoft.com/.default"
GRAPH_BASE_URL: str = "https://graph.microsoft.com/v1.0/admin/serviceAnnouncement"

_REQUIRED_VARS = ("MS_TENANT_ID", "MS_CLIENT_ID", "MS_CLIENT_SECRET")


@dataclass(frozen=True)
class Settings:
    tenant_id: str
    client_id: str
    client_secret: str
    output_path: str = DEFAULT_OUTPUT_PATH


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings from the process environment (or an explicit mapping).

    A local .env file is honoured only when reading the real environment, so
    tests passing a dict are never affected by the developer's machine.

    Raises:
        ConfigurationError  if any credential variable is missing or blank
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    values = {name: (environ.get(name) or "").strip() for name in _REQUIRED_VARS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")

    return Settings(
        tenant_id=values["MS_TENANT_ID"],
        client_id=values["MS_CLIENT_ID"],
        client_secret=values["MS_CLIENT_SECRET"],
        output_path=(environ.get("HEALTH_OUTPUT_PATH") or "").strip() or DEFAULT_OUTPUT_PATH,
    )
