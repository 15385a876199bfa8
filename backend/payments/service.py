"""Course payment service layer (Clean Architecture boundary).

Why:
    Students pay for a batch through a hosted checkout page. The price shown in
    the browser cannot be trusted, so this service re-reads the batch from the
    system of record at checkout time and derives the charged amount from it.

Behavior:
    - `batch_id` must be a canonical UUID; malformed ids fail before any
      external call.
    - Only active batches with a positive fee are payable.
    - The amount is `round(fees * 100)` in the smallest currency unit.
    - No local writes: a failure leaves nothing behind.

Permissions:
    Any authenticated identity with a known email may open a session for
    itself.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional, Protocol
from urllib.parse import quote, urlparse

from backend.identity_access.domain import Caller, mask_email
from backend.identity_access.tokens import CallerResolutionError

from .config import CANCEL_PATH, SUCCESS_PATH, CheckoutSettings

logger = logging.getLogger("institute.payments")

BATCH_ID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
DEFAULT_PRODUCT_NAME = "Course Enrollment"


@dataclass(frozen=True)
class Batch:
    id: str
    name: str
    fees: Any
    course_id: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class CheckoutRequest:
    """Processor-neutral description of a one-time hosted checkout."""

    amount_minor: int
    currency: str
    product_name: str
    description: str
    success_url: str
    cancel_url: str
    metadata: Dict[str, str] = field(default_factory=dict)
    customer_id: Optional[str] = None
    customer_email: Optional[str] = None


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str


class BatchRepoProtocol(Protocol):
    def get_active_batch(self, batch_id: str) -> Optional[Batch]:
        ...


class PaymentProcessorProtocol(Protocol):
    def find_customer_id(self, email: str) -> Optional[str]:
        ...

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        ...


class BatchNotFoundError(LookupError):
    """No active batch with the requested id."""


class PaymentSessionError(Exception):
    """Checkout could not be opened.

    `code` is stable and safe to expose; `detail` carries the raw downstream
    message for server-side logs only.
    """

    def __init__(self, code: str, detail: str = ""):
        super().__init__(code)
        self.code = code
        self.detail = detail


def parse_batch_id(value: object) -> str:
    """Return the lower-cased id; the whole value must be a canonical UUID (no padding)."""
    if value is None or value == "":
        raise ValueError("missing_batch_id")
    if not isinstance(value, str) or not BATCH_ID_PATTERN.fullmatch(value):
        raise ValueError("invalid_batch_id")
    return value.lower()


def to_minor_units(fees: object) -> int:
    """Convert a batch fee to the smallest currency unit (half-up rounding)."""
    if fees is None or isinstance(fees, bool):
        raise PaymentSessionError("invalid_batch_fee")
    try:
        amount = Decimal(str(fees))
    except (InvalidOperation, ValueError) as exc:
        raise PaymentSessionError("invalid_batch_fee") from exc
    if not amount.is_finite() or amount <= 0:
        raise PaymentSessionError("invalid_batch_fee")
    minor = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if minor <= 0:
        raise PaymentSessionError("invalid_batch_fee")
    return minor


def _redirect_base(origin: Optional[str], fallback: str) -> str:
    if origin:
        parsed = urlparse(origin.strip())
        if parsed.scheme in ("http", "https") and parsed.netloc:
            return f"{parsed.scheme}://{parsed.netloc}"
    return fallback.rstrip("/")


@dataclass
class CheckoutService:
    """Use cases for course checkout (framework-independent)."""

    batches: BatchRepoProtocol
    processor: Optional[PaymentProcessorProtocol]
    settings: CheckoutSettings = field(default_factory=CheckoutSettings)

    def create_session(self, caller: Caller, batch_id: object, *, origin: Optional[str] = None) -> CheckoutSession:
        """Open a hosted checkout for `batch_id` and return the processor session.

        Raises ValueError (malformed id), CallerResolutionError (no email),
        BatchNotFoundError (unknown/inactive batch) or PaymentSessionError.
        """
        batch_id = parse_batch_id(batch_id)
        if not caller.email:
            raise CallerResolutionError("email_unavailable")
        _log_step("user authenticated", user_id=caller.user_id, email=mask_email(caller.email))

        try:
            batch = self.batches.get_active_batch(batch_id)
        except Exception as exc:
            _log_step("batch lookup failed", batch_id=batch_id, error=str(exc), level=logging.ERROR)
            raise PaymentSessionError("batch_lookup_failed", str(exc)) from exc
        if batch is None:
            _log_step("batch not payable", batch_id=batch_id, level=logging.WARNING)
            raise BatchNotFoundError("batch_not_found")

        amount_minor = to_minor_units(batch.fees)
        _log_step("batch validated", batch_id=batch_id, amount_minor=amount_minor)

        if self.processor is None:
            _log_step("processor not configured", level=logging.ERROR)
            raise PaymentSessionError("payment_not_configured", "STRIPE_SECRET_KEY is not set")

        base = _redirect_base(origin, self.settings.app_base_url)
        try:
            customer_id = self.processor.find_customer_id(caller.email)
            _log_step("customer lookup", existing=bool(customer_id))
            session = self.processor.create_checkout_session(
                CheckoutRequest(
                    amount_minor=amount_minor,
                    currency=self.settings.currency,
                    product_name=batch.name or DEFAULT_PRODUCT_NAME,
                    description=f"Enrollment for batch: {batch_id}",
                    success_url=f"{base}{SUCCESS_PATH}?payment=success&batch_id={quote(batch_id)}",
                    cancel_url=f"{base}{CANCEL_PATH}?payment=cancelled",
                    metadata={"batch_id": batch_id, "user_id": caller.user_id},
                    customer_id=customer_id,
                    customer_email=None if customer_id else caller.email,
                )
            )
        except Exception as exc:
            _log_step("processor call failed", batch_id=batch_id, error=str(exc), level=logging.ERROR)
            raise PaymentSessionError("processor_error", str(exc)) from exc

        if not session.url:
            raise PaymentSessionError("processor_error", "session_url_missing")
        _log_step("checkout session created", session_id=session.session_id)
        return session


def _log_step(step: str, *, level: int = logging.INFO, **details: object) -> None:
    if details:
        pairs = " ".join(f"{k}={v}" for k, v in details.items())
        logger.log(level, "[create-course-payment] %s - %s", step, pairs)
    else:
        logger.log(level, "[create-course-payment] %s", step)


__all__ = [
    "BATCH_ID_PATTERN",
    "Batch",
    "CheckoutRequest",
    "CheckoutSession",
    "BatchRepoProtocol",
    "PaymentProcessorProtocol",
    "BatchNotFoundError",
    "PaymentSessionError",
    "CheckoutService",
    "parse_batch_id",
    "to_minor_units",
]
