"""
Stripe adapter for hosted checkout sessions.

Implements `PaymentProcessorProtocol` on top of the `stripe` package. The API
key is passed per call instead of being set on the module, so several
gateways (or tests) never share global state.

Security:
    - The secret key is server-side only and never logged.
    - Amounts come from `CheckoutRequest`, which the service derives from the
      batch row; this adapter does not accept prices from anywhere else.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import stripe

from .service import CheckoutRequest, CheckoutSession


def _get(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class StripeCheckoutGateway:
    def __init__(self, api_key: str, *, api_version: Optional[str] = None):
        if not api_key:
            raise ValueError("stripe_key_missing")
        self._api_key = api_key
        self._api_version = api_version

    def _request_opts(self) -> Dict[str, Any]:
        opts: Dict[str, Any] = {"api_key": self._api_key}
        if self._api_version:
            opts["stripe_version"] = self._api_version
        return opts

    def find_customer_id(self, email: str) -> Optional[str]:
        customers = stripe.Customer.list(email=email, limit=1, **self._request_opts())
        data = _get(customers, "data") or []
        if not data:
            return None
        customer_id = _get(data[0], "id")
        return str(customer_id) if customer_id else None

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        params: Dict[str, Any] = {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": request.currency,
                        "product_data": {
                            "name": request.product_name,
                            "description": request.description,
                        },
                        "unit_amount": request.amount_minor,
                    },
                    "quantity": 1,
                }
            ],
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": dict(request.metadata),
        }
        if request.customer_id:
            params["customer"] = request.customer_id
        elif request.customer_email:
            params["customer_email"] = request.customer_email
        session = stripe.checkout.Session.create(**params, **self._request_opts())
        return CheckoutSession(session_id=str(_get(session, "id") or ""), url=str(_get(session, "url") or ""))


__all__ = ["StripeCheckoutGateway"]
