from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from flashstudy.models.deck import (
    Card,
    CardCreate,
    CardWithState,
    Deck,
    DeckCreate,
    RecentReview,
)
from flashstudy.models.review import ReviewState
from flashstudy.services.errors import PersistenceFailure

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS decks (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     INTEGER NOT NULL,
    title       TEXT NOT NULL,
    icon        TEXT NOT NULL DEFAULT '',
    color       TEXT NOT NULL DEFAULT '',
    created_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_decks_user ON decks(user_id);

CREATE TABLE IF NOT EXISTS cards (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    deck_id     INTEGER NOT NULL REFERENCES decks(id) ON DELETE CASCADE,
    question    TEXT NOT NULL,
    response    TEXT NOT NULL,
    difficulty  INTEGER NOT NULL DEFAULT 1,
    created_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_cards_deck ON cards(deck_id);

CREATE TABLE IF NOT EXISTS studies (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id          INTEGER NOT NULL,
    card_id          INTEGER NOT NULL REFERENCES cards(id) ON DELETE CASCADE,
    interval         INTEGER NOT NULL DEFAULT 1 CHECK (interval >= 1),
    repetitions      INTEGER NOT NULL DEFAULT 0 CHECK (repetitions >= 0),
    ease_factor      REAL NOT NULL DEFAULT 2.5 CHECK (ease_factor >= 1.3),
    last_difficulty  INTEGER CHECK (last_difficulty IN (1, 2, 3)),
    last_reviewed_at TEXT,
    updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE (user_id, card_id)
);
CREATE INDEX IF NOT EXISTS idx_studies_reviewed ON studies(user_id, last_reviewed_at);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""

_CARD_WITH_STATE_SQL = """
SELECT c.id AS card_id, c.deck_id, c.question, c.response,
       c.difficulty AS initial_difficulty,
       d.title AS deck_title, d.color AS deck_color, d.icon AS deck_icon,
       s.id AS study_id, s.interval, s.repetitions, s.ease_factor,
       s.last_difficulty, s.last_reviewed_at
FROM cards c
JOIN decks d ON d.id = c.deck_id
LEFT JOIN studies s ON s.card_id = c.id AND s.user_id = ?
WHERE d.user_id = ?
"""


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_iso(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_state(row: aiosqlite.Row) -> ReviewState:
    return ReviewState(
        interval=row["interval"],
        repetitions=row["repetitions"],
        ease_factor=row["ease_factor"],
        last_difficulty=row["last_difficulty"],
        last_reviewed_at=_from_iso(row["last_reviewed_at"]),
    )


def _row_to_card_with_state(row: aiosqlite.Row) -> CardWithState:
    d = dict(row)
    state = _row_to_state(row) if d.pop("study_id") is not None else None
    return CardWithState(
        card_id=d["card_id"],
        deck_id=d["deck_id"],
        question=d["question"],
        response=d["response"],
        initial_difficulty=d["initial_difficulty"],
        deck_title=d["deck_title"],
        deck_color=d["deck_color"],
        deck_icon=d["deck_icon"],
        state=state,
    )


def _row_to_recent_review(row: aiosqlite.Row) -> RecentReview:
    d = dict(row)
    d["last_reviewed_at"] = _from_iso(d["last_reviewed_at"])
    return RecentReview(**d)


class SQLiteStore:
    """
    Review-state store backed by a single SQLite file.

    Construct one per process, call `open()` at startup and `close()` at
    shutdown. Each operation runs on its own short-lived connection with a
    busy timeout, so concurrent requests never share a transaction.
    """

    def __init__(self, path: Path, timeout: float = 5.0) -> None:
        self.path = path
        self.timeout = timeout
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(self.path, timeout=self.timeout) as db:
                await db.executescript(SCHEMA_SQL)
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceFailure(f"could not initialise {self.path}: {exc}") from exc
        self._open = True
        logger.info("SQLite store ready at %s", self.path)

    async def close(self) -> None:
        self._open = False
        logger.info("SQLite store at %s closed", self.path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self._open:
            raise PersistenceFailure("store is not open")
        try:
            async with aiosqlite.connect(self.path, timeout=self.timeout) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys=ON")
                yield db
        except aiosqlite.Error as exc:
            logger.error("SQLite operation failed: %s", exc)
            raise PersistenceFailure(str(exc)) from exc

    # --- Review state ---

    @staticmethod
    async def _fetch_state(
        db: aiosqlite.Connection, user_id: int, card_id: int
    ) -> ReviewState | None:
        cursor = await db.execute(
            "SELECT * FROM studies WHERE user_id = ? AND card_id = ?",
            (user_id, card_id),
        )
        row = await cursor.fetchone()
        return _row_to_state(row) if row else None

    @staticmethod
    async def _write_state(
        db: aiosqlite.Connection, user_id: int, card_id: int, state: ReviewState
    ) -> None:
        await db.execute(
            """INSERT INTO studies
               (user_id, card_id, interval, repetitions, ease_factor,
                last_difficulty, last_reviewed_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(user_id, card_id) DO UPDATE SET
                   interval = excluded.interval,
                   repetitions = excluded.repetitions,
                   ease_factor = excluded.ease_factor,
                   last_difficulty = excluded.last_difficulty,
                   last_reviewed_at = excluded.last_reviewed_at,
                   updated_at = excluded.updated_at""",
            (
                user_id,
                card_id,
                state.interval,
                state.repetitions,
                state.ease_factor,
                int(state.last_difficulty) if state.last_difficulty is not None else None,
                _to_iso(state.last_reviewed_at),
                _now(),
            ),
        )

    async def get_review_state(self, user_id: int, card_id: int) -> ReviewState | None:
        async with self._connect() as db:
            return await self._fetch_state(db, user_id, card_id)

    async def upsert_review_state(
        self, user_id: int, card_id: int, state: ReviewState
    ) -> ReviewState:
        """Insert or overwrite in a single statement."""
        async with self._connect() as db:
            await self._write_state(db, user_id, card_id, state)
            await db.commit()
        return state

    async def apply_review(
        self,
        user_id: int,
        card_id: int,
        update: Callable[[ReviewState], ReviewState],
    ) -> ReviewState:
        """
        Read-modify-write the review state of one (user, card) pair.

        `BEGIN IMMEDIATE` takes the database write lock before the read, so a
        concurrent review of the same card waits (up to the busy timeout)
        instead of overwriting with a stale state. A missing row starts from
        the defaults. Any failure rolls the whole transaction back.
        """
        async with self._connect() as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                current = await self._fetch_state(db, user_id, card_id) or ReviewState()
                updated = update(current)
                await self._write_state(db, user_id, card_id, updated)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        return updated

    async def list_cards_for_review(
        self, user_id: int, deck_id: int | None = None
    ) -> list[CardWithState]:
        query = _CARD_WITH_STATE_SQL
        params: list[int] = [user_id, user_id]
        if deck_id is not None:
            query += " AND d.id = ?"
            params.append(deck_id)
        query += " ORDER BY c.id"
        async with self._connect() as db:
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
        return [_row_to_card_with_state(r) for r in rows]

    async def list_recent_reviews(self, user_id: int, limit: int = 10) -> list[RecentReview]:
        async with self._connect() as db:
            cursor = await db.execute(
                """SELECT c.id AS card_id, c.question, c.response,
                          d.title AS deck_title, d.color AS deck_color,
                          s.last_difficulty, s.last_reviewed_at,
                          s.interval, s.repetitions
                   FROM studies s
                   JOIN cards c ON c.id = s.card_id
                   JOIN decks d ON d.id = c.deck_id
                   WHERE s.user_id = ? AND s.last_reviewed_at IS NOT NULL
                   ORDER BY s.last_reviewed_at DESC
                   LIMIT ?""",
                (user_id, limit),
            )
            rows = await cursor.fetchall()
        return [_row_to_recent_review(r) for r in rows]

    # --- Ownership ---

    async def card_belongs_to_user(self, card_id: int, user_id: int) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(
                """SELECT 1 FROM cards c
                   JOIN decks d ON d.id = c.deck_id
                   WHERE c.id = ? AND d.user_id = ?""",
                (card_id, user_id),
            )
            return await cursor.fetchone() is not None

    async def deck_belongs_to_user(self, deck_id: int, user_id: int) -> bool:
        return await self.get_deck(user_id, deck_id) is not None

    # --- Decks / cards ---

    async def get_deck(self, user_id: int, deck_id: int) -> Deck | None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, user_id, title, icon, color FROM decks WHERE id = ? AND user_id = ?",
                (deck_id, user_id),
            )
            row = await cursor.fetchone()
        return Deck(**dict(row)) if row else None

    async def list_decks(self, user_id: int) -> list[Deck]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, user_id, title, icon, color FROM decks WHERE user_id = ? ORDER BY title",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [Deck(**dict(r)) for r in rows]

    async def create_deck(self, user_id: int, body: DeckCreate) -> Deck:
        async with self._connect() as db:
            cursor = await db.execute(
                "INSERT INTO decks (user_id, title, icon, color, created_at) VALUES (?, ?, ?, ?, ?)",
                (user_id, body.title.strip(), body.icon, body.color, _now()),
            )
            await db.commit()
            deck_id = cursor.lastrowid
        return Deck(
            id=deck_id,
            user_id=user_id,
            title=body.title.strip(),
            icon=body.icon,
            color=body.color,
        )

    async def create_card(self, deck_id: int, body: CardCreate) -> Card:
        question = body.question.strip()
        response = body.response.strip()
        async with self._connect() as db:
            cursor = await db.execute(
                """INSERT INTO cards (deck_id, question, response, difficulty, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (deck_id, question, response, body.difficulty, _now()),
            )
            await db.commit()
            card_id = cursor.lastrowid
        return Card(
            id=card_id,
            deck_id=deck_id,
            question=question,
            response=response,
            difficulty=body.difficulty,
        )

    async def list_cards_for_deck(self, deck_id: int) -> list[Card]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, deck_id, question, response, difficulty FROM cards WHERE deck_id = ? ORDER BY id",
                (deck_id,),
            )
            rows = await cursor.fetchall()
        return [Card(**dict(r)) for r in rows]

    async def delete_card(self, card_id: int) -> bool:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM cards WHERE id = ?", (card_id,))
            await db.commit()
            return (cursor.rowcount or 0) > 0
