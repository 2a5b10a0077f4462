"""
Protocol definition for notification backends.

Defines the interface the poll scheduler relies on to deliver
one notification per new feed entry.
"""

from typing import Protocol, runtime_checkable

from offer_notify.models import Notification


@runtime_checkable
class Notifier(Protocol):
    """
    Protocol defining the interface for notification backends.

    A notifier makes a single, synchronous delivery attempt per call.
    It never retries and never touches the seen-store.
    """

    async def send(self, notification: Notification) -> None:
        """
        Deliver one notification.

        Parameters
        ----------
        notification : Notification
            The notification to deliver.

        Raises
        ------
        NotifyError
            If the notification could not be delivered.
        """
        ...

    async def close(self) -> None:
        """Close the notifier and release any resources."""
        ...
