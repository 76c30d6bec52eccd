"""Record store access for application payment fields.

Two backends expose the same operations: the hosted Supabase table used in
production and a SQLAlchemy table for deployments that talk to Postgres
directly. Both raise StoreError on any failure.
"""
import logging
from typing import List

import httpx
from postgrest.exceptions import APIError
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from supabase import AsyncClient, acreate_client

from app.config import APPLICATION_TABLE, Settings
from app.database import create_session_factory
from app.errors import StoreError
from app.models import ApplicationEntry, PaymentStatus

logger = logging.getLogger(__name__)


class RecordStore:
    async def mark_order_pending(self, application_id: str, order_id: str, amount: float) -> int:
        """Attach a new gateway order to an application. Returns the number of rows updated."""
        raise NotImplementedError

    async def update_status_by_order_id(self, order_id: str, status: PaymentStatus) -> List[dict]:
        """Set payment_status on every record holding order_id and return those records."""
        raise NotImplementedError

    async def close(self):
        pass


class SupabaseRecordStore(RecordStore):
    def __init__(self, client: AsyncClient, table: str = APPLICATION_TABLE):
        self.client = client
        self.table = table

    @classmethod
    async def connect(cls, settings: Settings) -> "SupabaseRecordStore":
        client = await acreate_client(settings.supabase_url, settings.supabase_key)
        return cls(client)

    async def mark_order_pending(self, application_id: str, order_id: str, amount: float) -> int:
        try:
            response = await (
                self.client.table(self.table)
                .update({
                    "payment_order_id": order_id,
                    "payment_amount": str(amount),
                    "payment_status": PaymentStatus.PENDING.value,
                })
                .eq("id", application_id)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            logger.error("Supabase update for application %s failed: %s", application_id, e)
            raise StoreError(f"Database update failed: {_error_message(e)}") from e
        return len(response.data or [])

    async def update_status_by_order_id(self, order_id: str, status: PaymentStatus) -> List[dict]:
        try:
            response = await (
                self.client.table(self.table)
                .update({"payment_status": status.value})
                .eq("payment_order_id", order_id)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            logger.error("Supabase verify update for order %s failed: %s", order_id, e)
            raise StoreError("Failed to update payment status in database.") from e
        return list(response.data or [])


class SqlRecordStore(RecordStore):
    def __init__(self, session_factory, engine=None):
        self.session_factory = session_factory
        self.engine = engine

    @classmethod
    def connect(cls, settings: Settings) -> "SqlRecordStore":
        engine, session_factory = create_session_factory(settings)
        return cls(session_factory, engine=engine)

    async def mark_order_pending(self, application_id: str, order_id: str, amount: float) -> int:
        statement = (
            update(ApplicationEntry)
            .where(ApplicationEntry.id == application_id)
            .values(
                payment_order_id=order_id,
                payment_amount=str(amount),
                payment_status=PaymentStatus.PENDING.value,
            )
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Database update for application %s failed: %s", application_id, e)
            raise StoreError(f"Database update failed: {e}") from e
        return result.rowcount

    async def update_status_by_order_id(self, order_id: str, status: PaymentStatus) -> List[dict]:
        statement = (
            update(ApplicationEntry)
            .where(ApplicationEntry.payment_order_id == order_id)
            .values(payment_status=status.value)
            .returning(
                ApplicationEntry.id,
                ApplicationEntry.payment_order_id,
                ApplicationEntry.payment_amount,
                ApplicationEntry.payment_status,
            )
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(statement)
                rows = [dict(row) for row in result.mappings().all()]
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Database verify update for order %s failed: %s", order_id, e)
            raise StoreError("Failed to update payment status in database.") from e
        return rows

    async def close(self):
        if self.engine is not None:
            await self.engine.dispose()


async def create_record_store(settings: Settings) -> RecordStore:
    if settings.store_backend == "supabase":
        logger.info("Using Supabase record store at %s", settings.supabase_url)
        return await SupabaseRecordStore.connect(settings)
    logger.info("Using SQL record store")
    return SqlRecordStore.connect(settings)


def _error_message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error)
