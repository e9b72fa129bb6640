# backend/contractor_hub/clients/stripe.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..config import settings


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    status: Optional[str]
    amount: Optional[int]
    currency: Optional[str]
    raw: dict[str, Any]

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


class StripeClient:
    """Read-only PaymentIntent lookup over the Stripe REST API."""

    def __init__(self, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.base = settings.stripe_base_url.rstrip("/")
        self.api_key = settings.stripe_secret_key
        self._transport = transport

    def enabled(self) -> bool:
        return bool(self.api_key)

    def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntent:
        if not self.api_key:
            return PaymentIntent(payment_intent_id, None, None, None, {"error": "stripe_secret_key not set"})

        url = f"{self.base}/payment_intents/{payment_intent_id}"
        try:
            with httpx.Client(timeout=20.0, transport=self._transport) as client:
                r = client.get(url, auth=(self.api_key, ""))
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPError as e:
            return PaymentIntent(payment_intent_id, None, None, None, {"error": str(e), "endpoint": url})

        amount = data.get("amount")
        return PaymentIntent(
            id=str(data.get("id") or payment_intent_id),
            status=data.get("status"),
            amount=int(amount) if isinstance(amount, int) else None,
            currency=data.get("currency"),
            raw=data,
        )
