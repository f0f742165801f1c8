import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select

from crm_overlay.models.config_document import ConfigDocument
from crm_overlay.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ConfigRepository(BaseRepository):
    """Encapsulates queries against the ``config_documents`` table."""

    async def get(self, key: str) -> Optional[ConfigDocument]:
        """Return the document stored under *key*, or ``None``."""
        result = await self._db.execute(
            select(ConfigDocument).where(ConfigDocument.key == key)
        )
        return result.scalar_one_or_none()

    async def upsert(self, key: str, value: Any, modified_by: str) -> ConfigDocument:
        """Replace the document stored under *key* (insert when absent)."""
        now = datetime.now(timezone.utc)
        document = await self.get(key)
        if document is None:
            document = ConfigDocument(
                key=key, value=value, modified_by=modified_by, updated_at=now
            )
            self._db.add(document)
        else:
            document.value = value
            document.modified_by = modified_by
            document.updated_at = now
        await self._db.flush()
        return document

    async def seed_if_missing(self, key: str, default: Any) -> ConfigDocument:
        """Insert *default* under *key* unless a document already exists.

        Idempotent: when the row is present this returns the stored
        document without writing.
        """
        document = await self.get(key)
        if document is not None:
            return document

        logger.info("Config document %s is missing, seeding defaults", key)
        document = await self.upsert(key, default, modified_by="system")
        await self._db.commit()
        return document
