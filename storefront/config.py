"""
Storefront Configuration

All settings come from environment variables (a local `.env` is loaded
for development). Read once and cached; tests call `get_settings.cache_clear()`
after changing the environment.
"""
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""
    supabase_url: str
    supabase_service_role_key: str
    upstash_redis_rest_url: str
    upstash_redis_rest_token: str
    stripe_secret_key: str
    stripe_webhook_secret: str
    stripe_api_url: str
    app_url: str
    currency: str
    cart_ttl_seconds: int
    cart_open_on_add: bool
    shipping_countries: tuple[str, ...]


def _env_bool(name: str, default: bool = False) -> bool:
    return os.environ.get(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings from the current environment (cached)."""
    countries = os.environ.get("SHIPPING_COUNTRIES", "US,CA,GB,AU")
    return Settings(
        supabase_url=os.environ.get("SUPABASE_URL", ""),
        supabase_service_role_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY", ""),
        upstash_redis_rest_url=os.environ.get("UPSTASH_REDIS_REST_URL", ""),
        upstash_redis_rest_token=os.environ.get("UPSTASH_REDIS_REST_TOKEN", ""),
        stripe_secret_key=os.environ.get("STRIPE_SECRET_KEY", ""),
        stripe_webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET", ""),
        stripe_api_url=os.environ.get("STRIPE_API_URL", "https://api.stripe.com/v1"),
        app_url=os.environ.get("APP_URL", "http://localhost:3000").rstrip("/"),
        currency=os.environ.get("STORE_CURRENCY", "usd").lower(),
        cart_ttl_seconds=int(os.environ.get("CART_TTL_SECONDS", "2592000")),  # 30 days
        cart_open_on_add=_env_bool("CART_OPEN_ON_ADD"),
        shipping_countries=tuple(c.strip().upper() for c in countries.split(",") if c.strip()),
    )
