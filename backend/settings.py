import os

# Basic settings helper to read environment configuration.

DEFAULT_TOUR_API_BASE_URL = "https://apis.data.go.kr/B551011/KorService2"


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        # Server-side key wins; the public key name is accepted for parity with the web client.
        self.TOUR_API_KEY: str | None = os.getenv("TOUR_API_KEY") or os.getenv("NEXT_PUBLIC_TOUR_API_KEY")
        self.TOUR_API_BASE_URL: str = os.getenv("TOUR_API_BASE_URL", DEFAULT_TOUR_API_BASE_URL).rstrip("/")
        self.TOUR_API_MOBILE_APP: str = os.getenv("TOUR_API_MOBILE_APP", "MyTrip")
        self.TOUR_API_MAX_RETRIES: int = _as_int(os.getenv("TOUR_API_MAX_RETRIES"), 3)
        self.TOUR_API_TIMEOUT: float = _as_float(os.getenv("TOUR_API_TIMEOUT"), 10.0)
        self.DATABASE_URL: str | None = os.getenv("DATABASE_URL")
        self.DEBUG: bool = _as_bool(os.getenv("DEBUG"), False)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.SLOW_CALL_MS: float = _as_float(os.getenv("SLOW_CALL_MS"), 2000.0)


settings = Settings()
