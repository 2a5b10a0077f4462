"""
Exception hierarchy for Offer Notify.

Each error type maps to a failure scope in the polling pipeline:
a single entry, a single cycle, or the whole process.
"""


class OfferNotifyError(Exception):
    """Base class for all Offer Notify errors."""


class FetchError(OfferNotifyError):
    """Raised when the feed cannot be retrieved or parsed."""


class StoreTransactionError(OfferNotifyError):
    """Raised when a seen-store transaction fails and is rolled back."""


class NotifyError(OfferNotifyError):
    """Raised when a notification could not be delivered."""


class StartupError(OfferNotifyError):
    """Raised when the application cannot start."""
