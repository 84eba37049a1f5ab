import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")

PAYSTACK_BASE_URL = "https://api.paystack.co"
DEFAULT_TIMEOUT = 60.0

_TRUTHY = ("yes", "true", "1", "on")


def _flag(name: str, default: str = "no") -> bool:
    return (os.getenv(name) or default).strip().lower() in _TRUTHY


def _seconds(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class GatewaySettings:
    """Paystack gateway configuration, read-only for the settlement core."""

    enable: bool = False
    demo: bool = False
    test_secret_key: str = ""
    live_secret_key: str = ""
    base_url: str = PAYSTACK_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    site_url: str = "http://localhost:8000"
    profile_url: str = "/profile/"

    @classmethod
    def from_env(cls) -> "GatewaySettings":
        return cls(
            enable=_flag("PAYSTACK_ENABLE"),
            demo=_flag("PAYSTACK_DEMO"),
            test_secret_key=(os.getenv("PAYSTACK_TEST_SECRET_KEY") or "").strip(),
            live_secret_key=(os.getenv("PAYSTACK_LIVE_SECRET_KEY") or "").strip(),
            base_url=(os.getenv("PAYSTACK_BASE_URL") or PAYSTACK_BASE_URL).rstrip("/"),
            timeout=_seconds("PAYSTACK_TIMEOUT", DEFAULT_TIMEOUT),
            site_url=(os.getenv("SITE_URL") or "http://localhost:8000").rstrip("/"),
            profile_url=os.getenv("PROFILE_URL") or "/profile/",
        )

    @property
    def secret_key(self) -> str:
        # demo mode selects the test credential pair
        return self.test_secret_key if self.demo else self.live_secret_key

    def is_available(self) -> bool:
        return self.enable and bool(self.secret_key)
