import os


def get_settings_module() -> str:
    """Pick the settings module from APP_ENV (default: development)."""
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def env_list(name: str, default: str = "*"):
    raw = os.getenv(name, default).strip()
    if raw == "*":
        return "*"
    return [item.strip() for item in raw.split(",") if item.strip()]


def db_config_from_env(*, default_password: str = "", default_database: str = "school_attendance") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", default_database),
        "pool_size": int(os.getenv("DB_POOL_SIZE", "15")),
        "pool_timeout": float(os.getenv("DB_POOL_TIMEOUT_SECONDS", "10")),
        "queue_limit": int(os.getenv("DB_POOL_QUEUE_LIMIT", "50")),
    }
