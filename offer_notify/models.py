"""
Data model for feed entries and outgoing notifications.
"""

from dataclasses import dataclass
from typing import Any

# Zero-width space: ntfy replaces an empty body with a default message
EMPTY_BODY = "\u200b"


@dataclass(frozen=True)
class Entry:
    """
    One item of the watched feed.

    Attributes
    ----------
    identifier : str
        Unique identifier of the entry within the feed, used as dedup key.
    title : str
        Entry title.
    link : str
        Entry URL.
    description : str
        Entry description/summary.
    """

    identifier: str
    title: str = ""
    link: str = ""
    description: str = ""

    @classmethod
    def from_feedparser(cls, item: Any) -> "Entry":
        """
        Create an Entry from a feedparser entry.

        The RSS guid is preferred as identifier, falling back to the link.

        Parameters
        ----------
        item : Any
            A feedparser entry object.

        Returns
        -------
        Entry
            Normalized entry instance.

        Raises
        ------
        ValueError
            If the item has neither a guid nor a link.
        """
        link = item.get("link", "") or ""
        identifier = item.get("id", "") or link
        if not identifier:
            raise ValueError("Entry has no guid or link")

        return cls(
            identifier=identifier,
            title=item.get("title", "") or "",
            link=link,
            description=item.get("summary", "") or "",
        )


@dataclass(frozen=True)
class Notification:
    """
    A single outgoing notification.

    Attributes
    ----------
    title : str
        Notification title.
    body : str
        Message payload.
    link : str | None
        Optional URL opened when the notification is clicked.
    """

    title: str
    body: str = EMPTY_BODY
    link: str | None = None

    @classmethod
    def for_entry(cls, entry: Entry) -> "Notification":
        """Build the notification announcing a new entry."""
        return cls(title=entry.title, body=EMPTY_BODY, link=entry.link or None)
