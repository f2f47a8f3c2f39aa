"""Payment and plan configuration.

Provider credentials come from the environment and are read on every call so
that a redeploy with new keys (or a test) never sees stale values.
"""
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from app.errors import AppError

load_dotenv()

SUPPORTED_PROVIDERS = ("midtrans", "xendit", "stripe")

CURRENCY = "IDR"

# Credits granted on activation. Pro is effectively unlimited.
UNLIMITED_CREDITS = 999999
FREE_CREDITS = 10


@dataclass(frozen=True)
class Plan:
    """A purchasable plan and its identifiers at each payment provider."""
    plan_id: str
    name: str
    price: int
    features: tuple[str, ...]
    midtrans_item_id: str
    xendit_plan_id: str
    stripe_price_id: str


PLANS: dict[str, Plan] = {
    "pro": Plan(
        plan_id="pro",
        name="Pro Plan",
        price=49000,
        features=(
            "Analisa gambar unlimited",
            "Simpan prompt unlimited",
            "AI Enhancement premium",
            "Export ke berbagai format",
            "Prioritas dukungan",
        ),
        midtrans_item_id="garuda-ai-pro-monthly",
        xendit_plan_id="plan_1234567890",
        stripe_price_id="price_1234567890",
    ),
    "enterprise": Plan(
        plan_id="enterprise",
        name="Enterprise Plan",
        price=199000,
        features=(
            "Semua fitur Pro",
            "API access dengan rate limit tinggi",
            "Custom branding",
            "Dedicated account manager",
            "SLA 99.9% uptime",
        ),
        midtrans_item_id="garuda-ai-enterprise-monthly",
        xendit_plan_id="plan_0987654321",
        stripe_price_id="price_0987654321",
    ),
}


@dataclass
class ProviderConfig:
    """Credentials and endpoint of one payment provider."""
    name: str
    display_name: str
    enabled: bool
    settings: dict[str, str] = field(default_factory=dict)


@dataclass
class PaymentConfig:
    default_provider: str
    currency: str
    providers: dict[str, ProviderConfig]

    @property
    def active(self) -> ProviderConfig:
        return self.providers[self.default_provider]


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_app_url() -> str:
    return os.environ.get("APP_URL", "http://localhost:3000").rstrip("/")


def get_payment_config() -> PaymentConfig:
    """Build the payment configuration from the environment."""
    midtrans_production = _env_flag("MIDTRANS_IS_PRODUCTION", False)
    providers = {
        "midtrans": ProviderConfig(
            name="midtrans",
            display_name="Midtrans",
            enabled=_env_flag("MIDTRANS_ENABLED", True),
            settings={
                "server_key": os.environ.get("MIDTRANS_SERVER_KEY", ""),
                "client_key": os.environ.get("MIDTRANS_CLIENT_KEY", ""),
                "api_url": (
                    "https://api.midtrans.com/v2"
                    if midtrans_production
                    else "https://api.sandbox.midtrans.com/v2"
                ),
            },
        ),
        "xendit": ProviderConfig(
            name="xendit",
            display_name="Xendit",
            enabled=_env_flag("XENDIT_ENABLED", False),
            settings={
                "secret_key": os.environ.get("XENDIT_SECRET_KEY", ""),
                "public_key": os.environ.get("XENDIT_PUBLIC_KEY", ""),
                "webhook_token": os.environ.get("XENDIT_WEBHOOK_TOKEN", ""),
                "api_url": "https://api.xendit.co",
            },
        ),
        "stripe": ProviderConfig(
            name="stripe",
            display_name="Stripe",
            enabled=_env_flag("STRIPE_ENABLED", False),
            settings={
                "secret_key": os.environ.get("STRIPE_SECRET_KEY", ""),
                "publishable_key": os.environ.get("STRIPE_PUBLISHABLE_KEY", ""),
                "webhook_secret": os.environ.get("STRIPE_WEBHOOK_SECRET", ""),
            },
        ),
    }

    default_provider = os.environ.get("PAYMENT_PROVIDER", "midtrans").strip().lower()
    if default_provider not in SUPPORTED_PROVIDERS:
        raise AppError(f"Unsupported payment provider: {default_provider}", 500)

    return PaymentConfig(
        default_provider=default_provider,
        currency=CURRENCY,
        providers=providers,
    )


def get_active_provider_config(config: PaymentConfig | None = None) -> ProviderConfig:
    """Return the default provider's config, failing if it is disabled."""
    config = config or get_payment_config()
    provider = config.active
    if not provider.enabled:
        raise AppError(f"Payment provider {config.default_provider} is not enabled", 500)
    return provider


def validate_payment_config(config: PaymentConfig | None = None) -> tuple[bool, list[str]]:
    """Check that the default provider is enabled and has its credentials.

    Returns:
        (is_valid, errors)
    """
    config = config or get_payment_config()
    errors: list[str] = []
    active = config.active

    if not active.enabled:
        errors.append(f"Default provider {config.default_provider} is not enabled")
        return False, errors

    if config.default_provider == "midtrans":
        if not active.settings.get("server_key"):
            errors.append("Midtrans Server Key is required")
        if not active.settings.get("client_key"):
            errors.append("Midtrans Client Key is required")
    elif config.default_provider == "xendit":
        if not active.settings.get("secret_key"):
            errors.append("Xendit Secret Key is required")
    elif config.default_provider == "stripe":
        if not active.settings.get("secret_key"):
            errors.append("Stripe Secret Key is required")

    return len(errors) == 0, errors


def get_plan(plan_id: str | None) -> Plan | None:
    if not plan_id:
        return None
    return PLANS.get(plan_id)


def credits_for_plan(plan_id: str) -> int:
    """Image analysis credits granted when a plan becomes active."""
    return UNLIMITED_CREDITS if plan_id == "pro" else FREE_CREDITS
