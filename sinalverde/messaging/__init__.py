"""
Outbound messaging for SinalVerde.

Public API:
    - MessagingGateway: Single and paced batch sends
    - normalize_phone: Phone number -> JID
    - BatchItem, BatchItemResult, BatchReport: Batch input/output types
    - GatewayError, NotConnectedError, UnknownRecipientError: Send failures
    - BatchValidationError and subclasses: Batch rejected before sending
"""

from .gateway import (
    COUNTRY_PREFIX,
    JID_SUFFIX,
    MAX_BATCH_SIZE,
    BatchEmptyError,
    BatchItem,
    BatchItemResult,
    BatchMalformedError,
    BatchReport,
    BatchTooLargeError,
    BatchValidationError,
    GatewayError,
    MessagingGateway,
    NotConnectedError,
    UnknownRecipientError,
    normalize_phone,
)

__all__ = [
    "COUNTRY_PREFIX",
    "JID_SUFFIX",
    "MAX_BATCH_SIZE",
    "BatchEmptyError",
    "BatchItem",
    "BatchItemResult",
    "BatchMalformedError",
    "BatchReport",
    "BatchTooLargeError",
    "BatchValidationError",
    "GatewayError",
    "MessagingGateway",
    "NotConnectedError",
    "UnknownRecipientError",
    "normalize_phone",
]
