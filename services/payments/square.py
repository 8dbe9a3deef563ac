"""Square quick-pay payment links.

Creates a hosted checkout link for a fixed amount through the Square
Checkout API:
https://developer.squareup.com/reference/square/checkout-api/create-payment-link

Credentials are checked before any request is made; an Application ID
pasted where the access token or location id belongs is the most common
misconfiguration and is rejected up front.
"""

import logging
import time
from decimal import Decimal
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from services.shared.config import Settings
from services.shared.errors import ConfigurationError
from services.shared.money import to_minor_units

logger = logging.getLogger(__name__)

SQUARE_BASE_URLS = {
    "production": "https://connect.squareup.com",
    "sandbox": "https://connect.squareupsandbox.com",
}
PAYMENT_LINKS_PATH = "/v2/online-checkout/payment-links"
APPLICATION_ID_PREFIX = "sq0idp-"
LOCATION_ID_BAD_PREFIXES = ("sq0idp-", "sq0app-")

MISSING_CONFIG_MESSAGE = (
    "Square configuration missing. Ensure you have set SQUARE_ACCESS_TOKEN and "
    "SQUARE_LOCATION_ID. (Do not use Application ID for Location ID)."
)
TOKEN_IS_APP_ID_MESSAGE = (
    "Invalid Square Configuration: You provided an Application ID (sq0idp-...) as the "
    "SQUARE_ACCESS_TOKEN. Please use the Production Access Token (starts with EAAA...) "
    "from Square Dashboard -> Credentials."
)
LOCATION_IS_APP_ID_MESSAGE = (
    "Invalid Square Configuration: You provided an Application ID (sq0idp-...) as the "
    "SQUARE_LOCATION_ID. Please find your specific Location ID in Square Dashboard -> "
    "Locations."
)


class PaymentLinkRequest(BaseModel):
    """Body of ``POST /create-payment-link``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: str | None = None
    amount: Decimal | None = Field(None, description="Amount in dollars")
    name: str | None = None
    description: str | None = None

    @property
    def has_required_fields(self) -> bool:
        """A zero or negative amount counts as missing."""
        return self.amount is not None and self.amount > 0 and bool(self.name)


class PaymentLinkResult(BaseModel):
    """Result of payment link creation.

    Attributes:
        success: Whether Square created the link
        url: Checkout URL (long form when Square provides it)
        link_id: Square payment link id
        error: Error message if creation failed
        status_code: HTTP status to report to the caller on failure
    """

    success: bool
    url: str | None = None
    link_id: str | None = None
    error: str | None = None
    status_code: int | None = None


class SquarePaymentLinkService:
    """Square Checkout API client for quick-pay links."""

    def __init__(self, settings: Settings) -> None:
        """Initialize payment link service.

        Args:
            settings: Application settings with Square configuration
        """
        self.settings = settings
        self._client = httpx.Client(timeout=settings.square_timeout_seconds)

    @property
    def base_url(self) -> str:
        return SQUARE_BASE_URLS[self.settings.square_environment]

    def is_available(self) -> bool:
        return bool(self.settings.square_access_token and self.settings.square_location_id)

    def validate_configuration(self) -> None:
        """Reject missing or swapped Square credentials.

        Raises:
            ConfigurationError: With a message telling the operator what to fix
        """
        if not self.is_available():
            logger.error("Square configuration missing")
            raise ConfigurationError(MISSING_CONFIG_MESSAGE)

        token = self.settings.square_access_token
        location_id = self.settings.square_location_id
        if token.startswith(APPLICATION_ID_PREFIX):
            logger.error("Square access token is an Application ID")
            raise ConfigurationError(TOKEN_IS_APP_ID_MESSAGE)
        if location_id.startswith(LOCATION_ID_BAD_PREFIXES):
            logger.error("Square location id is an Application ID")
            raise ConfigurationError(LOCATION_IS_APP_ID_MESSAGE)

    @staticmethod
    def idempotency_key(order_id: str | None) -> str:
        """Per-call key: order id plus epoch milliseconds."""
        return f"{order_id}-{int(time.time() * 1000)}"

    def build_payload(self, request: PaymentLinkRequest) -> dict[str, Any]:
        if not request.has_required_fields:
            raise ValueError("Missing required fields (amount, name)")
        return {
            "idempotency_key": self.idempotency_key(request.order_id),
            "quick_pay": {
                "name": request.name,
                "price_money": {
                    "amount": to_minor_units(request.amount),
                    "currency": "USD",
                },
                "location_id": self.settings.square_location_id,
            },
            "description": request.description or f"Invoice #{request.order_id}",
            "checkout_options": {"allow_tipping": False},
        }

    def create_payment_link(self, request: PaymentLinkRequest) -> PaymentLinkResult:
        """Create a quick-pay checkout link.

        Args:
            request: Validated request with amount and name present

        Returns:
            PaymentLinkResult with the checkout URL or Square's error

        Raises:
            ConfigurationError: If credentials are missing or swapped
        """
        self.validate_configuration()
        payload = self.build_payload(request)
        url = f"{self.base_url}{PAYMENT_LINKS_PATH}"

        logger.info(
            f"Creating Square payment link for order {request.order_id} "
            f"({self.settings.square_environment})"
        )
        try:
            response = self._client.post(
                url,
                headers={
                    "Authorization": f"Bearer {self.settings.square_access_token}",
                    "Square-Version": self.settings.square_api_version,
                },
                json=payload,
            )
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Square request failed: {e}")
            return PaymentLinkResult(success=False, error=f"Square request failed: {e}")

        if response.status_code >= 400:
            error = self._error_message(data)
            logger.error(f"Square API error ({response.status_code}): {data}")
            return PaymentLinkResult(success=False, error=error, status_code=response.status_code)

        link = data.get("payment_link") or {}
        return PaymentLinkResult(
            success=True,
            url=link.get("long_url") or link.get("url"),
            link_id=link.get("id"),
        )

    def _error_message(self, data: dict[str, Any]) -> str:
        errors = data.get("errors") or []
        if not errors:
            return "Failed to create Square link"

        err = errors[0]
        if err.get("category") == "AUTHENTICATION_ERROR":
            return (
                f"Square Auth Failed: {err.get('detail')}. Verify Token and Environment "
                f"({self.settings.square_environment})."
            )
        if err.get("code") == "LOCATION_MISMATCH":
            return (
                "Square Location Mismatch: The Location ID provided does not belong to this "
                "Access Token."
            )
        return f"Square Error: {err.get('detail') or err.get('code')}"
