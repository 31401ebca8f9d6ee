from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Iterable, List, Mapping, Optional

from vane_api.codec import new_key, transform_row
from vane_api.errors import CsvImportError, NotFoundError, TrackingError, ValidationError
from vane_api.schemas import VANE_TYPE, LogEntry, Vane
from vane_api.store import DocumentStore, StoreError

logger = logging.getLogger(__name__)

VANES_QUERY = "*[_type == 'vane' && !(_id in path('drafts.**'))] | order(_createdAt desc)"


def day_selector(day: date) -> str:
    return f'log[day == "{day.isoformat()}"]'


class HabitService:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def list_habits(self) -> List[Vane]:
        try:
            docs = await self.store.fetch(VANES_QUERY)
        except StoreError as exc:
            logger.error("Could not list vanes: %s", exc)
            raise TrackingError("Can't load vanes") from exc
        return [Vane.model_validate(doc) for doc in docs or []]

    async def create_habit(self, title: Optional[str]) -> Vane:
        title = str(title or "").strip()
        if not title:
            raise ValidationError("title must be a non-empty string")
        try:
            doc = await self.store.create({"_type": VANE_TYPE, "title": title})
        except StoreError as exc:
            logger.error("Could not create vane %r: %s", title, exc)
            raise TrackingError("Can't create vane") from exc
        return Vane.model_validate(doc)

    async def delete_habit(self, habit_id: str) -> None:
        try:
            await self.store.delete(habit_id)
        except StoreError as exc:
            logger.info("Delete of vane %s rejected: %s", habit_id, exc)
            raise NotFoundError() from exc

    async def log_day(self, habit_id: str, day: date) -> Vane:
        """Record ``day`` on the vane, replacing any entry already there.

        The unset and the append travel in one patch, which the store applies
        atomically, so a day never ends up with two entries.
        """
        entry = LogEntry(key=new_key(), timestamp=datetime.now(timezone.utc), day=day)
        patch = (
            self.store.patch(habit_id)
            .set_if_missing({"log": []})
            .unset([day_selector(day)])
            .append("log", [entry.to_document()])
        )
        try:
            doc = await patch.commit()
        except StoreError as exc:
            logger.warning("Could not log %s on vane %s: %s", day.isoformat(), habit_id, exc)
            raise TrackingError("Can't track vane") from exc
        return Vane.model_validate(doc)

    async def unlog_day(self, habit_id: str, day: date) -> None:
        try:
            await self.store.patch(habit_id).unset([day_selector(day)]).commit()
        except StoreError as exc:
            logger.warning("Could not unlog %s on vane %s: %s", day.isoformat(), habit_id, exc)
            raise TrackingError("Can't untrack vane") from exc

    async def import_csv(self, rows: Iterable[Mapping[str, Optional[str]]]) -> int:
        """Create one vane per CSV row in a single transaction.

        Rows are staged as they are read; nothing is written until the whole
        stream has parsed, so a bad row leaves the store untouched.
        """
        now = datetime.now(timezone.utc)
        transaction = self.store.transaction()
        count = 0
        for row in rows:
            imported = transform_row(row, now=now)
            transaction.create(imported.to_document())
            count += 1
        if not count:
            return 0
        try:
            await transaction.commit()
        except StoreError as exc:
            logger.error("Import transaction with %s vanes failed: %s", count, exc)
            raise CsvImportError("Import failed: could not save vanes", status_code=502) from exc
        logger.info("Imported %s vanes", count)
        return count
