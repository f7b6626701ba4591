"""Persisted catalog of user-defined badges.

The whole catalog is one JSON document stored under a fixed key. Every
mutation loads the full document, changes it in memory and writes the
full document back. There is no locking: two writers sharing a backend
can overwrite each other's changes (last write wins).
"""

import json
import logging
import random
import string
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from models.custom_badge import (
    CUSTOM_BADGE_LIMITS,
    CUSTOM_BADGE_STORAGE_KEY,
    CUSTOM_BADGE_STORAGE_VERSION,
    CustomBadge,
    CustomBadgeInput,
    build_badge,
    validate_badge_fields,
    validate_name,
    validate_text,
)
from models.errors import CapacityExceeded, DuplicateName, NotFound, PersistenceError
from models.storage import StorageBackend

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CatalogDocument:
    """The persisted unit: all badges plus the schema version."""
    badges: List[CustomBadge] = field(default_factory=list)
    version: str = CUSTOM_BADGE_STORAGE_VERSION

    def to_dict(self) -> dict:
        return {"badges": [b.to_dict() for b in self.badges], "version": self.version}

    @classmethod
    def from_dict(cls, d: dict) -> "CatalogDocument":
        return cls(
            badges=[CustomBadge.from_dict(b) for b in d.get("badges", [])],
            version=d.get("version", ""),
        )


class BadgeCatalogStore:
    """Reads, validates and mutates the badge catalog document."""

    def __init__(
        self,
        storage: StorageBackend,
        key: str = CUSTOM_BADGE_STORAGE_KEY,
        version: str = CUSTOM_BADGE_STORAGE_VERSION,
        clock: Callable[[], int] = _now_ms,
    ):
        self.storage = storage
        self.key = key
        self.version = version
        self.clock = clock

    # ------------------------------------------------------------------
    # Document I/O
    # ------------------------------------------------------------------

    def _empty(self) -> CatalogDocument:
        return CatalogDocument(badges=[], version=self.version)

    def load(self) -> CatalogDocument:
        """Return the stored document, or a fresh empty one.

        Missing, unreadable, corrupt, or other-version documents all load
        as empty; a version mismatch is a reset, not a migration.
        """
        try:
            raw = self.storage.get(self.key)
            if not raw:
                return self._empty()
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("catalog document is not a JSON object")
            if data.get("version") != self.version:
                logger.warning(
                    "Badge catalog version %r differs from %r; resetting catalog",
                    data.get("version"), self.version,
                )
                return self._empty()
            return CatalogDocument.from_dict(data)
        except (OSError, ValueError, TypeError, KeyError, AttributeError):
            logger.error("Failed to read badge catalog", exc_info=True)
            return self._empty()

    def save(self, doc: CatalogDocument) -> None:
        """Write the whole document; raises PersistenceError on failure."""
        try:
            payload = json.dumps(doc.to_dict(), ensure_ascii=False)
            self.storage.set(self.key, payload)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save badge catalog: %s", exc)
            raise PersistenceError(f"Could not save badge catalog: {exc}") from exc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_all(self) -> List[CustomBadge]:
        """All badges in creation order."""
        return self.load().badges

    def get_by_id(self, badge_id: str) -> Optional[CustomBadge]:
        for badge in self.get_all():
            if badge.id == badge_id:
                return badge
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _new_id(self, now: int) -> str:
        suffix = "".join(random.choices(_ID_ALPHABET, k=9))
        return f"badge-{now}-{suffix}"

    def create(self, badge_input: CustomBadgeInput) -> CustomBadge:
        doc = self.load()

        max_count = CUSTOM_BADGE_LIMITS["max_count"]
        if len(doc.badges) >= max_count:
            raise CapacityExceeded(f"At most {max_count} custom badges can be created")
        if any(b.name == badge_input.name for b in doc.badges):
            raise DuplicateName(f"A badge named {badge_input.name!r} already exists")

        # createdAt never goes backwards within the catalog
        now = max([self.clock()] + [b.created_at for b in doc.badges])
        existing_ids = {b.id for b in doc.badges}
        badge_id = self._new_id(now)
        while badge_id in existing_ids:
            badge_id = self._new_id(now)

        badge = build_badge(badge_id, badge_input, now)
        validate_badge_fields(badge)

        doc.badges.append(badge)
        self.save(doc)
        logger.info("Created badge %s (%s)", badge.id, badge.name)
        return badge

    def update(self, badge_id: str, badge_input: CustomBadgeInput) -> CustomBadge:
        """Replace every mutable field of a badge (not a partial patch)."""
        doc = self.load()
        index = next((i for i, b in enumerate(doc.badges) if b.id == badge_id), None)
        if index is None:
            raise NotFound(f"Badge {badge_id!r} not found")
        if any(b.id != badge_id and b.name == badge_input.name for b in doc.badges):
            raise DuplicateName(f"A badge named {badge_input.name!r} already exists")

        current = doc.badges[index]
        updated = current.with_input(badge_input, max(self.clock(), current.created_at))
        validate_badge_fields(updated)

        doc.badges[index] = updated
        self.save(doc)
        logger.info("Updated badge %s (%s)", updated.id, updated.name)
        return updated

    def delete(self, badge_id: str) -> None:
        doc = self.load()
        remaining = [b for b in doc.badges if b.id != badge_id]
        if len(remaining) == len(doc.badges):
            raise NotFound(f"Badge {badge_id!r} not found")
        doc.badges = remaining
        self.save(doc)
        logger.info("Deleted badge %s", badge_id)

    def clear_all(self) -> None:
        self.save(self._empty())
        logger.info("Cleared badge catalog")

    # ------------------------------------------------------------------
    # Pure validators (no uniqueness check)
    # ------------------------------------------------------------------

    @staticmethod
    def validate_name(name: Optional[str]) -> Optional[str]:
        return validate_name(name)

    @staticmethod
    def validate_text(text: Optional[str]) -> Optional[str]:
        return validate_text(text)
