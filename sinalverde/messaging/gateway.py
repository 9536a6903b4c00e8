"""
Outbound messaging through the supervised WhatsApp session.

Phone numbers are normalized to JIDs with a fixed Brazilian country prefix,
resolved against the network, and sent one at a time. Batches are paced with
a random 2-5 second pause after every item to keep the account from being
flagged as abusive.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sinalverde.adapters.whatsapp import WHATSAPP_SERVER
from sinalverde.session import ConnectionSupervisor, SessionPhase

logger = logging.getLogger(__name__)

COUNTRY_PREFIX = "55"
JID_SUFFIX = "@" + WHATSAPP_SERVER
MAX_BATCH_SIZE = 50
PACING_MIN_SECONDS = 2.0
PACING_SPREAD_SECONDS = 3.0

_NON_DIGITS = re.compile(r"\D")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class GatewayError(Exception):
    """Base exception for send failures raised by the gateway itself."""
    pass


class NotConnectedError(GatewayError):
    """A send was attempted while the session is not connected."""
    pass


class UnknownRecipientError(GatewayError):
    """The number has no WhatsApp account."""
    pass


class BatchValidationError(ValueError):
    """A batch was rejected before any send was attempted."""
    pass


class BatchMalformedError(BatchValidationError):
    pass


class BatchEmptyError(BatchValidationError):
    pass


class BatchTooLargeError(BatchValidationError):
    pass


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_phone(phone: str) -> str:
    """
    Turn a free-form phone number into a routable JID.

    Non-digits are stripped, one leading ``0`` is dropped and the ``55``
    country prefix is added when missing. Number length is not validated.

    >>> normalize_phone("0 11 99999-8888")
    '5511999998888@s.whatsapp.net'
    """
    number = _NON_DIGITS.sub("", phone)
    if number.startswith("0"):
        number = number[1:]
    if not number.startswith(COUNTRY_PREFIX):
        number = COUNTRY_PREFIX + number
    return number + JID_SUFFIX


# ---------------------------------------------------------------------------
# Batch types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BatchItem:
    """One (phone, message) pair of a batch; either field may be missing."""

    phone: str | None
    message: str | None


@dataclass
class BatchItemResult:
    """Outcome of one batch item."""

    phone: str | None
    success: bool
    jid: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"phone": self.phone, "success": True, "jid": self.jid}
        return {"phone": self.phone, "success": False, "error": self.error}


@dataclass
class BatchReport:
    """Ordered per-item results plus aggregate counts."""

    results: list[BatchItemResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def sent(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.sent

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "sent": self.sent,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class MessagingGateway:
    """
    Sends text messages through the supervisor's current session client.

    The gateway never touches session state except through
    :meth:`ConnectionSupervisor.record_sent`.

    Attributes:
        _supervisor: Source of the connection phase and session client.
        _sleep: Awaitable used for batch pacing (injectable for tests).
        _rng: Random source for the pacing interval.
    """

    def __init__(
        self,
        supervisor: ConnectionSupervisor,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._supervisor = supervisor
        self._sleep = sleep
        self._rng = rng or random.Random()

    def pacing_delay(self) -> float:
        """Random pause in seconds, uniform over [2, 5)."""
        return PACING_MIN_SECONDS + self._rng.random() * PACING_SPREAD_SECONDS

    async def send_one(self, phone: str, text: str) -> str:
        """
        Send *text* to *phone*.

        Returns:
            The JID the message was delivered to.

        Raises:
            NotConnectedError: If the session is not connected.
            UnknownRecipientError: If the number has no WhatsApp account.
            TransportError: If the session client fails; message unchanged.
        """
        client = self._supervisor.client
        if self._supervisor.snapshot().phase != SessionPhase.CONNECTED or client is None:
            raise NotConnectedError("WhatsApp is not connected")

        jid = normalize_phone(phone)
        try:
            resolved = await client.resolve(jid)
            if resolved is None:
                raise UnknownRecipientError(f"Number {phone} not found on WhatsApp")

            await client.send_text(resolved, text)
        except Exception as e:
            logger.warning("Failed to send message to %s: %s", phone, e)
            raise

        self._supervisor.record_sent()
        logger.info("Message sent to %s", phone)
        return resolved

    @staticmethod
    def validate_batch(items: Any) -> None:
        """
        Reject a batch wholesale before anything is sent.

        Raises:
            BatchMalformedError: If *items* is not a list.
            BatchEmptyError: If *items* is empty.
            BatchTooLargeError: If *items* has more than 50 entries.
        """
        if not isinstance(items, (list, tuple)):
            raise BatchMalformedError('"messages" must be an array of { phone, message }')
        if not items:
            raise BatchEmptyError('"messages" must not be empty')
        if len(items) > MAX_BATCH_SIZE:
            raise BatchTooLargeError(f"At most {MAX_BATCH_SIZE} messages per batch")

    async def send_batch(self, items: Sequence[BatchItem]) -> BatchReport:
        """
        Send each item in order, pausing 2-5s after every send.

        One item's failure never stops the rest of the batch.
        """
        self.validate_batch(items)

        report = BatchReport()
        for item in items:
            if not item.phone or not item.message:
                report.results.append(BatchItemResult(
                    phone=item.phone,
                    success=False,
                    error='"phone" and "message" are required',
                ))
            else:
                try:
                    jid = await self.send_one(item.phone, item.message)
                    report.results.append(BatchItemResult(phone=item.phone, success=True, jid=jid))
                except Exception as e:
                    report.results.append(BatchItemResult(phone=item.phone, success=False, error=str(e)))

            await self._sleep(self.pacing_delay())

        logger.info("Batch finished: %d sent, %d failed", report.sent, report.failed)
        return report
