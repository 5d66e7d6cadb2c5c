import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache

from dotenv import load_dotenv


ENVIRONMENTS = ("development", "production", "test")
MIN_JWT_SECRET_LENGTH = 32

BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_DATABASE_URL = f"sqlite:///{os.path.join(BACKEND_DIR, 'educore.db')}"

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class ConfigError(Exception):
    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


def parse_duration(value: str) -> timedelta:
    """Parse lifetimes written as ``8h``, ``30m``, ``7d`` or plain seconds."""
    match = _DURATION_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"invalid duration {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _DURATION_SECONDS[unit])


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expires_in: timedelta = field(default=timedelta(hours=8))
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 5000
    database_url: str = DEFAULT_DATABASE_URL
    frontend_url: str = "http://localhost:5173"
    upload_dir: str = "uploads"
    rate_limit_max: int = 200
    rate_limit_window_seconds: int = 900
    bcrypt_rounds: int = 12
    seed_default_data: bool = True
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        problems = []
        if len(self.jwt_secret or "") < MIN_JWT_SECRET_LENGTH:
            problems.append(f"JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters")
        if self.environment not in ENVIRONMENTS:
            problems.append(f"ENVIRONMENT must be one of {', '.join(ENVIRONMENTS)}")
        if self.jwt_expires_in.total_seconds() <= 0:
            problems.append("JWT_EXPIRES_IN must be a positive duration")
        if self.rate_limit_max < 1 or self.rate_limit_window_seconds < 1:
            problems.append("RATE_LIMIT_MAX and RATE_LIMIT_WINDOW_SECONDS must be positive")
        if not 4 <= self.bcrypt_rounds <= 31:
            problems.append("BCRYPT_ROUNDS must be between 4 and 31")
        if problems:
            raise ConfigError(problems)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def rate_limit(self) -> str:
        return f"{self.rate_limit_max} per {self.rate_limit_window_seconds} seconds"

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        problems = []

        def read_int(name: str, default: int) -> int:
            raw = env.get(name, str(default))
            try:
                return int(raw)
            except ValueError:
                problems.append(f"{name} must be an integer, got {raw!r}")
                return default

        port = read_int("PORT", 5000)
        rate_limit_max = read_int("RATE_LIMIT_MAX", 200)
        rate_limit_window = read_int("RATE_LIMIT_WINDOW_SECONDS", 900)
        bcrypt_rounds = read_int("BCRYPT_ROUNDS", 12)

        expires_raw = env.get("JWT_EXPIRES_IN", "8h")
        try:
            expires_in = parse_duration(expires_raw)
        except ValueError:
            problems.append(f"JWT_EXPIRES_IN must look like 8h, 30m or 3600, got {expires_raw!r}")
            expires_in = timedelta(hours=8)

        if problems:
            raise ConfigError(problems)

        return cls(
            jwt_secret=env.get("JWT_SECRET", ""),
            jwt_algorithm=env.get("JWT_ALGORITHM", "HS256"),
            jwt_expires_in=expires_in,
            environment=env.get("ENVIRONMENT", "development").strip().lower(),
            host=env.get("HOST", "127.0.0.1"),
            port=port,
            database_url=env.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            frontend_url=env.get("FRONTEND_URL", "http://localhost:5173"),
            upload_dir=env.get("UPLOAD_DIR", "uploads"),
            rate_limit_max=rate_limit_max,
            rate_limit_window_seconds=rate_limit_window,
            bcrypt_rounds=bcrypt_rounds,
            seed_default_data=_as_bool(env.get("SEED_DEFAULT_DATA", "true")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(dotenv_path=os.path.join(BACKEND_DIR, ".env"))
    return Settings.from_env()
