from __future__ import annotations

"""Async storage layer for subscriptions and per-user settings."""
import sqlite3
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Optional
from uuid import UUID

import aiosqlite

from ..models.reminder import AuthorizationState
from ..models.subscription import Subscription
from ..models.user_settings import UserSettings

SCHEMA = """
CREATE TABLE IF NOT EXISTS subscriptions (
    id TEXT PRIMARY KEY,
    user_id INTEGER NOT NULL,
    title TEXT NOT NULL,
    amount TEXT NOT NULL,
    currency TEXT NOT NULL,
    billing_date TEXT NOT NULL,
    remind_days_before INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_subscriptions_user
ON subscriptions(user_id, billing_date);
CREATE TABLE IF NOT EXISTS user_settings (
    user_id INTEGER PRIMARY KEY,
    is_pro INTEGER NOT NULL DEFAULT 0,
    notifications TEXT NOT NULL DEFAULT 'not_determined',
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


class SubscriptionStore:
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    async def init_schema(self) -> None:
        conn = await self._connect()
        try:
            await conn.executescript(SCHEMA)
            await conn.commit()
        finally:
            await conn.close()

    async def create(self, subscription: Subscription) -> Subscription:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO subscriptions
                    (id, user_id, title, amount, currency, billing_date, remind_days_before, is_active, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(subscription.id),
                    subscription.user_id,
                    subscription.title,
                    str(subscription.amount),
                    subscription.currency,
                    subscription.billing_date.isoformat(),
                    subscription.remind_days_before,
                    int(subscription.is_active),
                    subscription.created_at.isoformat(),
                ),
            )
            await conn.commit()
        finally:
            await conn.close()
        return subscription

    async def update(self, subscription: Subscription) -> bool:
        """Overwrite the mutable fields; id, owner and created_at never change."""
        conn = await self._connect()
        try:
            cursor = await conn.execute(
                """
                UPDATE subscriptions SET
                    title=?, amount=?, currency=?, billing_date=?, remind_days_before=?, is_active=?
                WHERE id=? AND user_id=?
                """,
                (
                    subscription.title,
                    str(subscription.amount),
                    subscription.currency,
                    subscription.billing_date.isoformat(),
                    subscription.remind_days_before,
                    int(subscription.is_active),
                    str(subscription.id),
                    subscription.user_id,
                ),
            )
            await conn.commit()
            return cursor.rowcount > 0
        finally:
            await conn.close()

    async def delete(self, user_id: int, subscription_id: UUID) -> bool:
        conn = await self._connect()
        try:
            cursor = await conn.execute(
                "DELETE FROM subscriptions WHERE id=? AND user_id=?", (str(subscription_id), user_id)
            )
            await conn.commit()
            return cursor.rowcount > 0
        finally:
            await conn.close()

    async def get(self, user_id: int, subscription_id: UUID) -> Optional[Subscription]:
        conn = await self._connect()
        try:
            cursor = await conn.execute(
                "SELECT * FROM subscriptions WHERE id=? AND user_id=?", (str(subscription_id), user_id)
            )
            row = await cursor.fetchone()
        finally:
            await conn.close()
        return self._row_to_subscription(row) if row else None

    async def list_subscriptions(self, user_id: int) -> List[Subscription]:
        conn = await self._connect()
        try:
            cursor = await conn.execute(
                "SELECT * FROM subscriptions WHERE user_id=? ORDER BY billing_date ASC, created_at DESC",
                (user_id,),
            )
            rows = await cursor.fetchall()
        finally:
            await conn.close()
        return [self._row_to_subscription(row) for row in rows]

    async def list_all(self) -> List[Subscription]:
        conn = await self._connect()
        try:
            cursor = await conn.execute("SELECT * FROM subscriptions ORDER BY billing_date ASC, created_at DESC")
            rows = await cursor.fetchall()
        finally:
            await conn.close()
        return [self._row_to_subscription(row) for row in rows]

    async def count(self, user_id: int) -> int:
        conn = await self._connect()
        try:
            cursor = await conn.execute("SELECT COUNT(*) FROM subscriptions WHERE user_id=?", (user_id,))
            row = await cursor.fetchone()
        finally:
            await conn.close()
        return int(row[0])

    async def save_settings(self, settings: UserSettings) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO user_settings (user_id, is_pro, notifications, updated_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(user_id) DO UPDATE SET
                    is_pro=excluded.is_pro,
                    notifications=excluded.notifications,
                    updated_at=CURRENT_TIMESTAMP
                """,
                (settings.user_id, int(settings.is_pro), settings.notifications.value),
            )
            await conn.commit()
        finally:
            await conn.close()

    async def load_settings(self, user_id: int) -> UserSettings:
        conn = await self._connect()
        try:
            cursor = await conn.execute(
                "SELECT is_pro, notifications, updated_at FROM user_settings WHERE user_id=?", (user_id,)
            )
            row = await cursor.fetchone()
        finally:
            await conn.close()
        if row:
            return UserSettings(
                user_id=user_id,
                is_pro=bool(row["is_pro"]),
                notifications=AuthorizationState(row["notifications"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
        return UserSettings(user_id=user_id)

    @staticmethod
    def _row_to_subscription(row: sqlite3.Row) -> Subscription:
        return Subscription(
            id=UUID(row["id"]),
            user_id=row["user_id"],
            title=row["title"],
            amount=Decimal(row["amount"]),
            currency=row["currency"],
            billing_date=date.fromisoformat(row["billing_date"]),
            remind_days_before=row["remind_days_before"],
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
