import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BACKEND_ROOT = Path(__file__).resolve().parent


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.FAVORITES_DB_PATH: str = os.getenv(
            "FAVORITES_DB_PATH", str(BACKEND_ROOT / "data" / "favorites.sqlite")
        )
        self.FAVORITES_STORAGE_KEY: str = os.getenv("FAVORITES_STORAGE_KEY", "favorites-storage")

        # Uberlandia, MG
        self.MAP_HOME_LAT: float = _as_float(os.getenv("MAP_HOME_LAT"), -18.9186)
        self.MAP_HOME_LNG: float = _as_float(os.getenv("MAP_HOME_LNG"), -48.2772)
        self.MAP_DEFAULT_ZOOM: int = _as_int(os.getenv("MAP_DEFAULT_ZOOM"), 13)
        self.MAP_FOCUS_ZOOM: int = _as_int(os.getenv("MAP_FOCUS_ZOOM"), 16)
        self.MAP_FLY_DURATION: float = _as_float(os.getenv("MAP_FLY_DURATION"), 1.2)

        self.SEARCH_RETRIES: int = _as_int(os.getenv("SEARCH_RETRIES"), 1)
        self.HTTP_TIMEOUT_SECONDS: float = _as_float(os.getenv("HTTP_TIMEOUT_SECONDS"), 5.0)
        self.POSTAL_CODE_BASE_URL: str = os.getenv(
            "POSTAL_CODE_BASE_URL", "https://brasilapi.com.br/api/cep/v2"
        )
        self.STORAGE_WARNINGS_ENABLED: bool = _as_bool(os.getenv("STORAGE_WARNINGS_ENABLED"), True)


settings = Settings()
