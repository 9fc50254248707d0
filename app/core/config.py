import os
from dataclasses import dataclass

def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default

def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}

@dataclass(frozen=True)
class Settings:
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "digitalflix"
    movies_collection: str = "movies"
    users_collection: str = "users"
    jwt_secret: str = "digitalflix"
    jwt_expires_seconds: int = 3600
    # when False a movie may be created without a title (legacy contract)
    require_title: bool = True
    log_level: str = "INFO"
    port: int = 3000

def load_settings() -> Settings:
    return Settings(
        mongo_uri=os.getenv("MONGO_URI", Settings.mongo_uri),
        mongo_db=os.getenv("MONGO_DB", Settings.mongo_db),
        jwt_secret=os.getenv("JWT_SECRET", Settings.jwt_secret),
        jwt_expires_seconds=_env_int("JWT_EXPIRES_SECONDS", Settings.jwt_expires_seconds),
        require_title=_env_bool("REQUIRE_TITLE", Settings.require_title),
        log_level=os.getenv("LOG_LEVEL", Settings.log_level).upper(),
        port=_env_int("PORT", Settings.port),
    )
