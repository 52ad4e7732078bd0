from __future__ import annotations

import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from watchdesk.db.models import WatchlistItem


def _active_items(user_id: str):
    return select(WatchlistItem).where(
        WatchlistItem.user_id == user_id, WatchlistItem.active.is_(True)
    )


async def list_watchlist_items(db: AsyncSession, user_id: str) -> list[WatchlistItem]:
    result = await db.execute(_active_items(user_id).order_by(WatchlistItem.added_at.desc()))
    return list(result.scalars().all())


async def get_watchlist_symbols(db: AsyncSession, user_id: str) -> list[str]:
    if not user_id:
        return []
    items = await list_watchlist_items(db, user_id)
    return [str(item.symbol) for item in items]


async def add_watchlist_item(
    db: AsyncSession, user_id: str, symbol: str, company_name: str
) -> WatchlistItem:
    now = datetime.datetime.utcnow()
    insert_values = {
        "user_id": user_id,
        "symbol": symbol,
        "company_name": company_name,
        "active": True,
        "added_at": now,
        "removed_at": None,
    }
    update_values = {
        WatchlistItem.company_name: company_name,
        WatchlistItem.active: True,
        WatchlistItem.added_at: now,
        WatchlistItem.removed_at: None,
    }
    stmt = insert(WatchlistItem).values(**insert_values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[WatchlistItem.user_id, WatchlistItem.symbol], set_=update_values
    )
    await db.execute(stmt)
    await db.commit()

    result = await db.execute(
        select(WatchlistItem).where(
            WatchlistItem.user_id == user_id, WatchlistItem.symbol == symbol
        )
    )
    return result.scalar_one()


async def remove_watchlist_item(
    db: AsyncSession, user_id: str, symbol: str
) -> WatchlistItem | None:
    result = await db.execute(_active_items(user_id).where(WatchlistItem.symbol == symbol))
    item = result.scalar_one_or_none()
    if item is None:
        return None

    item.active = False
    item.removed_at = datetime.datetime.utcnow()
    await db.commit()
    return item
