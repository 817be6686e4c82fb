import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    dump_dir: str = "data"
    legacy_file: str = "data/accounts.txt"
    balance_threshold: int = 0   # 0 disables the low-balance alert
    strict_decode: bool = False


def _int_or_default(raw: Optional[str], default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from ``WALLET_*`` environment variables."""
    env = os.environ if env is None else env
    defaults = Settings()
    return Settings(
        dump_dir=env.get("WALLET_DUMP_DIR") or defaults.dump_dir,
        legacy_file=env.get("WALLET_LEGACY_FILE") or defaults.legacy_file,
        balance_threshold=_int_or_default(env.get("WALLET_BALANCE_THRESHOLD"), defaults.balance_threshold),
        strict_decode=(env.get("WALLET_STRICT_DECODE", "").strip().lower() in _TRUTHY),
    )
