"""Service settings, read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .captcha import TURNSTILE_VERIFY_URL


@dataclass
class Settings:
    store_url: str = "memory"
    assets_dir: Optional[str] = None
    captcha_mode: str = "accept"
    turnstile_secret: str = ""
    turnstile_url: str = TURNSTILE_VERIFY_URL
    host: str = "127.0.0.1"
    port: int = 8787
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            store_url=env.get("EMERALD_STORE", "memory"),
            assets_dir=env.get("EMERALD_ASSETS_DIR") or None,
            captcha_mode=env.get("EMERALD_CAPTCHA", "accept").lower(),
            turnstile_secret=env.get("TURNSTILE_SECRET", ""),
            turnstile_url=env.get("TURNSTILE_VERIFY_URL", TURNSTILE_VERIFY_URL),
            host=env.get("EMERALD_HOST", "127.0.0.1"),
            port=int(env.get("EMERALD_PORT", "8787")),
            log_level=env.get("EMERALD_LOG_LEVEL", "INFO").upper(),
        )
