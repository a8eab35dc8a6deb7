from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
import uuid

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from harmoniq.database.models import UserProfileRow, utcnow
from harmoniq.exceptions import StoreError
from harmoniq.schemas.profile import UserProfileRecord
from harmoniq.stores.base import PROFILE_CONFLICT_KEY, writable_values


logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlProfileStore:
    """Profiles in a self-hosted SQL database.

    Upserts are a single ``INSERT ... ON CONFLICT (user_id) DO UPDATE`` so the
    unique ``user_id`` constraint decides between create and update.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def upsert(
        self,
        record: Mapping[str, Any],
        *,
        on_conflict: str = PROFILE_CONFLICT_KEY,
    ) -> UserProfileRecord:
        values = writable_values(record, on_conflict=on_conflict)
        return await run_in_threadpool(self._upsert, values)

    async def select_one(self, *, user_id: str) -> UserProfileRecord | None:
        return await run_in_threadpool(self._select_one, user_id)

    def _upsert(self, values: dict[str, Any]) -> UserProfileRecord:
        now = utcnow()
        insert_values = {
            "id": str(uuid.uuid4()),
            "sports_activities": [],
            "created_at": now,
            **values,
            "updated_at": now,
        }
        update_values = {key: value for key, value in values.items() if key != PROFILE_CONFLICT_KEY}
        update_values["updated_at"] = now

        with self._session_factory() as db:
            insert = _DIALECT_INSERTS.get(db.get_bind().dialect.name)
            if insert is None:
                raise StoreError(f"Upserts are not supported on {db.get_bind().dialect.name}.")

            stmt = (
                insert(UserProfileRow)
                .values(**insert_values)
                .on_conflict_do_update(index_elements=[PROFILE_CONFLICT_KEY], set_=update_values)
                .returning(UserProfileRow)
            )
            try:
                row = db.scalars(stmt, execution_options={"populate_existing": True}).one()
                record = UserProfileRecord.model_validate(row, from_attributes=True)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                logger.exception("Profile upsert failed")
                raise StoreError("Could not save the profile. Please try again.") from exc
        return record

    def _select_one(self, user_id: str) -> UserProfileRecord | None:
        with self._session_factory() as db:
            try:
                row = db.scalars(select(UserProfileRow).where(UserProfileRow.user_id == user_id)).first()
            except SQLAlchemyError as exc:
                logger.exception("Profile lookup failed")
                raise StoreError("Could not load the profile.") from exc
            if row is None:
                return None
            return UserProfileRecord.model_validate(row, from_attributes=True)
