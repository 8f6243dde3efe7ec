"""File-backed price cache: company directory plus per-symbol daily bars.

The working database lives in memory (aiosqlite ``:memory:``). At startup
the whole file is loaded into it; after every mutation the whole database
is written back out. Writes go to a temporary sibling file that atomically
replaces the previous snapshot, and an internal write lock serializes
concurrent upserts so no snapshot ever drops another writer's rows.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import ClassVar

import aiosqlite

from stock_dashboard.core.config import StorageConfig
from stock_dashboard.core.exceptions import StorageError, StoreUninitializedError
from stock_dashboard.core.models import Company, PriceBar

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"

DEFAULT_COMPANIES: tuple[Company, ...] = (
    Company(symbol="AAPL", name="Apple Inc."),
    Company(symbol="MSFT", name="Microsoft Corporation"),
    Company(symbol="GOOGL", name="Alphabet Inc. (Class A)"),
    Company(symbol="AMZN", name="Amazon.com, Inc."),
    Company(symbol="META", name="Meta Platforms, Inc."),
    Company(symbol="TSLA", name="Tesla, Inc."),
    Company(symbol="NVDA", name="NVIDIA Corporation"),
    Company(symbol="NFLX", name="Netflix, Inc."),
    Company(symbol="ADBE", name="Adobe Inc."),
    Company(symbol="INTC", name="Intel Corporation"),
    Company(symbol="AMD", name="Advanced Micro Devices, Inc."),
)


class PriceCache:
    """SQLite snapshot cache for companies and daily price bars.

    Parameters
    ----------
    db_path : str
        Snapshot file. ``":memory:"`` disables persistence entirely.
    seed_companies : sequence of Company
        Inserted when the companies table is empty after loading.
    """

    _SCHEMA: ClassVar[list[str]] = [
        """CREATE TABLE IF NOT EXISTS companies (
            symbol TEXT PRIMARY KEY,
            name TEXT NOT NULL
        )""",
        """CREATE TABLE IF NOT EXISTS prices (
            symbol TEXT NOT NULL,
            date TEXT NOT NULL,
            open REAL,
            high REAL,
            low REAL,
            close REAL,
            volume INTEGER,
            PRIMARY KEY (symbol, date)
        )""",
    ]

    def __init__(
        self,
        db_path: str,
        seed_companies: Sequence[Company] = DEFAULT_COMPANIES,
    ) -> None:
        self._path = db_path
        self._seed = list(seed_companies)
        self._db: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> str:
        return self._path

    @property
    def initialized(self) -> bool:
        return self._db is not None

    # --- Lifecycle ---

    async def initialize(self) -> None:
        """Load the snapshot (or create the schema) and seed companies."""
        if self._db is not None:
            return

        db = await aiosqlite.connect(IN_MEMORY)
        try:
            db.row_factory = aiosqlite.Row
            if self._persistent and Path(self._path).exists():
                await self._load_snapshot(db)
                logger.info("Loaded price cache from %s", self._path)
            for sql in self._SCHEMA:
                await db.execute(sql)
            await db.commit()
        except Exception as e:
            await db.close()
            raise StorageError(
                f"Failed to initialize price cache: {e}",
                context={"operation": "initialize", "path": self._path},
            ) from e

        self._db = db
        await self._seed_companies()

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def health_check(self) -> bool:
        if self._db is None:
            return False
        try:
            async with self._db.execute("SELECT 1") as cursor:
                row = await cursor.fetchone()
            return row is not None
        except aiosqlite.Error:
            return False

    # --- Prices ---

    async def upsert_prices(self, symbol: str, bars: Sequence[PriceBar]) -> int:
        """Insert-or-replace ``bars`` keyed by (symbol, date), then persist.

        Returns the number of rows written.
        """
        db = self._require()
        if not bars:
            return 0

        rows = [
            (symbol, bar.date.isoformat(), bar.open, bar.high, bar.low, bar.close, bar.volume)
            for bar in bars
        ]
        async with self._write_lock:
            try:
                await db.executemany(
                    """INSERT OR REPLACE INTO prices
                       (symbol, date, open, high, low, close, volume)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    rows,
                )
                await db.commit()
            except aiosqlite.Error as e:
                await db.rollback()
                raise StorageError(
                    f"Failed to upsert prices for {symbol}: {e}",
                    context={"operation": "upsert", "table": "prices", "path": self._path},
                ) from e
            await self._flush()

        logger.info("Cached %d price bars for %s", len(rows), symbol)
        return len(rows)

    async def read_prices(self, symbol: str) -> list[PriceBar]:
        """All cached bars for ``symbol``, ordered by date ascending."""
        db = self._require()
        try:
            async with db.execute(
                """SELECT date, open, high, low, close, volume
                   FROM prices WHERE symbol = ? ORDER BY date""",
                (symbol,),
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(
                f"Failed to read prices for {symbol}: {e}",
                context={"operation": "read", "table": "prices", "path": self._path},
            ) from e
        return [self._row_to_bar(row) for row in rows]

    # --- Companies ---

    async def list_companies(self) -> list[Company]:
        db = self._require()
        try:
            async with db.execute(
                "SELECT symbol, name FROM companies ORDER BY symbol"
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(
                f"Failed to list companies: {e}",
                context={"operation": "read", "table": "companies", "path": self._path},
            ) from e
        return [Company(symbol=row["symbol"], name=row["name"]) for row in rows]

    # --- Persistence ---

    async def persist(self) -> None:
        """Write the whole in-memory database to the snapshot file."""
        self._require()
        async with self._write_lock:
            await self._flush()

    @property
    def _persistent(self) -> bool:
        return self._path != IN_MEMORY

    def _require(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreUninitializedError(
                "Price cache used before initialize()",
                context={"operation": "require", "path": self._path},
            )
        return self._db

    async def _seed_companies(self) -> None:
        db = self._require()
        async with db.execute("SELECT COUNT(*) FROM companies") as cursor:
            row = await cursor.fetchone()
        if row[0] or not self._seed:
            return

        await db.executemany(
            "INSERT OR REPLACE INTO companies (symbol, name) VALUES (?, ?)",
            [(c.symbol, c.name) for c in self._seed],
        )
        await db.commit()
        logger.info("Seeded %d companies", len(self._seed))
        await self.persist()

    async def _load_snapshot(self, db: aiosqlite.Connection) -> None:
        async with aiosqlite.connect(self._path) as source:
            lines = [line async for line in source.iterdump()]
        await db.executescript("\n".join(lines))

    async def _flush(self) -> None:
        """Snapshot to a temp file and swap it in. Caller holds the lock."""
        if not self._persistent:
            return

        db = self._require()
        target = Path(self._path)
        tmp = target.with_name(target.name + ".tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp.unlink(missing_ok=True)
            lines = [line async for line in db.iterdump()]
            async with aiosqlite.connect(tmp) as out:
                await out.executescript("\n".join(lines))
            os.replace(tmp, target)
        except (OSError, aiosqlite.Error) as e:
            raise StorageError(
                f"Failed to persist price cache: {e}",
                context={"operation": "persist", "path": self._path},
            ) from e
        logger.debug("Persisted price cache to %s", self._path)

    @staticmethod
    def _row_to_bar(row: aiosqlite.Row) -> PriceBar:
        return PriceBar(
            date=date.fromisoformat(row["date"]),
            open=row["open"],
            high=row["high"],
            low=row["low"],
            close=row["close"],
            volume=row["volume"],
        )


async def create_cache(config: StorageConfig) -> PriceCache:
    """Create and initialize the price cache from configuration."""
    cache = PriceCache(config.sqlite_path)
    await cache.initialize()
    return cache
