import os
from dataclasses import dataclass


def _get_bool(env_name: str, default: bool = False) -> bool:
    val = os.getenv(env_name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_list(env_name: str, default: str = "") -> tuple:
    raw = os.getenv(env_name, default)
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass
class Settings:
    # App
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT: int = int(os.getenv("APP_PORT", "8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: tuple = _get_list("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")

    # Database (SQLite by default in a Docker volume)
    DB_URL: str = os.getenv("DB_URL", "sqlite+aiosqlite:////data/storefront.db")
    SEED_SAMPLE_PRODUCTS: bool = _get_bool("SEED_SAMPLE_PRODUCTS", True)

    # Redis (catalog read-through cache)
    REDIS_HOST: str = os.getenv("REDIS_HOST", "redis")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_USERNAME: str = os.getenv("REDIS_USERNAME", "")
    REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
    REDIS_SSL: bool = _get_bool("REDIS_SSL", False)
    CATALOG_CACHE_ENABLED: bool = _get_bool("CATALOG_CACHE_ENABLED", True)
    CATALOG_CACHE_TTL: int = int(os.getenv("CATALOG_CACHE_TTL", "300"))

    # Auth (bearer tokens are issued elsewhere, we only verify them)
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_MINUTES: int = int(os.getenv("JWT_EXPIRES_MINUTES", "1440"))

    # Orders: "lenient" resolves product references from several shapes,
    # "strict" only accepts a literal id in item["product"]
    ORDER_ITEM_POLICY: str = os.getenv("ORDER_ITEM_POLICY", "lenient")

    # Client
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000")
    CLIENT_REQUEST_TIMEOUT: float = float(os.getenv("CLIENT_REQUEST_TIMEOUT", "10"))
    LOCAL_ORDER_CACHE_PATH: str = os.getenv("LOCAL_ORDER_CACHE_PATH", os.path.expanduser("~/.storefront/orders.json"))
    # api | api_with_fallback | local
    CHECKOUT_SUBMISSION_POLICY: str = os.getenv("CHECKOUT_SUBMISSION_POLICY", "api_with_fallback")
    TAX_RATE: float = float(os.getenv("TAX_RATE", "0.05"))


settings = Settings()
