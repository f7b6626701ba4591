"""Classify Discogs URLs into (type, id) pairs."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DISCOGS_HOST = "discogs.com"
DISCOGS_TYPES = ("release", "master", "artist", "label")


@dataclass(frozen=True)
class DiscogsUrlInfo:
    """Result of parsing; both fields are None when the URL is not recognised."""
    type: Optional[str] = None
    id: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.type is not None

    @property
    def is_release(self) -> bool:
        return self.type == "release"

    @property
    def is_master(self) -> bool:
        return self.type == "master"

    def to_dict(self) -> dict:
        return {"type": self.type, "id": self.id}


def _leading_id(segment: str) -> str:
    # "249504-Nirvana-Nevermind" -> "249504"
    return segment.split("-")[0]


def parse_discogs_url(url: str) -> DiscogsUrlInfo:
    """Parse a Discogs URL.

    Accepted paths:
        /<type>/<id>
        /<type>/<id>-Some-Title
        /<lc>/<type>/<id>...   (any two-character first segment is
                                taken as a locale prefix)

    Any other host or path returns an empty DiscogsUrlInfo.
    """
    try:
        parsed = urlparse(url)
    except (ValueError, AttributeError):
        logger.debug("Unparseable URL: %r", url)
        return DiscogsUrlInfo()

    host = parsed.hostname or ""
    if not parsed.scheme or DISCOGS_HOST not in host:
        logger.debug("Not a Discogs URL: %r", url)
        return DiscogsUrlInfo()

    parts = [part for part in parsed.path.split("/") if part]

    if len(parts) >= 2 and parts[0] in DISCOGS_TYPES:
        return DiscogsUrlInfo(parts[0], _leading_id(parts[1]))

    if len(parts) > 2 and len(parts[0]) == 2 and parts[1] in DISCOGS_TYPES:
        return DiscogsUrlInfo(parts[1], _leading_id(parts[2]))

    logger.debug("Unrecognised Discogs URL pattern: %r", url)
    return DiscogsUrlInfo()


def is_discogs_url(url: str) -> bool:
    return parse_discogs_url(url).is_valid
