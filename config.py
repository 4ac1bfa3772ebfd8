import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from schemas import ChartConfig

DEFAULT_DATABASE_URL = "sqlite:///./ethgas.db"
DEFAULT_GAS_API_URL = "https://ethgasstation.info/json/ethgasAPI.json"
DEFAULT_API_KEY_NAME = "data.defipulse"
ERROR_POLICIES = ("fail", "skip")


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    gas_api_url: str = DEFAULT_GAS_API_URL
    api_key_name: str = DEFAULT_API_KEY_NAME
    poll_interval: float = 1.0
    fetch_timeout: Optional[float] = None
    tx_max_retries: int = 5
    error_policy: str = "fail"
    create_tables: bool = True
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 5000
    chart: ChartConfig = field(default_factory=ChartConfig)


def _get_bool(env, name, default):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _get_number(env, name, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a {cast.__name__}, got {raw!r}") from None


def load_settings(env=None) -> Settings:
    """
    Build Settings from environment variables.

    A .env file is loaded first in development (ENVIRONMENT unset or
    "development"). Pass an explicit mapping to bypass the process environment.
    """
    if env is None:
        if os.getenv("ENVIRONMENT", "development") == "development":
            load_dotenv()
        env = os.environ

    error_policy = env.get("ERROR_POLICY", "fail").strip().lower()
    if error_policy not in ERROR_POLICIES:
        raise ValueError(f"ERROR_POLICY must be one of {ERROR_POLICIES}, got {error_policy!r}")

    defaults = ChartConfig()
    chart = ChartConfig(
        height=_get_number(env, "CHART_HEIGHT", defaults.height, int),
        width=_get_number(env, "CHART_WIDTH", defaults.width, int),
        caption=env.get("CHART_CAPTION", defaults.caption),
        offset=_get_number(env, "CHART_OFFSET", defaults.offset, int),
        precision=_get_number(env, "CHART_PRECISION", defaults.precision, int),
        window_size=_get_number(env, "CHART_WINDOW", defaults.window_size, int),
        fps=_get_number(env, "CHART_FPS", defaults.fps, float),
        clear_screen=_get_bool(env, "CHART_CLEAR", defaults.clear_screen),
    )

    # Connection strings may reference $HOME for the TLS root certificate
    database_url = os.path.expandvars(env.get("DATABASE_URL") or DEFAULT_DATABASE_URL)

    return Settings(
        database_url=database_url,
        gas_api_url=env.get("GAS_API_URL") or DEFAULT_GAS_API_URL,
        api_key_name=env.get("API_KEY_NAME", DEFAULT_API_KEY_NAME).strip(),
        poll_interval=_get_number(env, "POLL_INTERVAL", 1.0, float),
        fetch_timeout=_get_number(env, "FETCH_TIMEOUT", None, float),
        tx_max_retries=_get_number(env, "TX_MAX_RETRIES", 5, int),
        error_policy=error_policy,
        create_tables=_get_bool(env, "CREATE_TABLES", True),
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
        host=env.get("HOST", "127.0.0.1"),
        port=_get_number(env, "PORT", 5000, int),
        chart=chart,
    )
