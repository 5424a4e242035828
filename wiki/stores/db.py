"""
Database store implementation.

Pages are JSON documents in a sqlite file. The name is copied to its own
column so it can be indexed.
"""

import contextlib
import dataclasses
import datetime
import json
import logging
import os
import sqlite3
from pathlib import Path
from typing import Callable, Iterator

from wiki.cache import CacheBase
from wiki.sanitizer import sanitize
from wiki.stores.types import PageStoreBase, normalize_name
from wiki.types import Page, PageInput, SaveResult

logger = logging.getLogger(__name__)

PAGE_COLLECTION_NAME = "Pages"
ALL_PAGES_KEY = "AllPages"
CACHE_ALL_PAGES_FOR = datetime.timedelta(minutes=30)


class DbPageStore(PageStoreBase):
    """
    sqlite based page store.

    No connection is kept: each operation opens its own and closes it before
    returning.
    """

    def __init__(
        self,
        path: str | Path,
        cache: CacheBase,
        *,
        sanitizer: Callable[[str], str] = sanitize,
        cache_for: datetime.timedelta = CACHE_ALL_PAGES_FOR,
    ):
        self.path = Path(path)
        self.cache = cache
        self.sanitizer = sanitizer
        self.cache_for = cache_for
        logger.info("Using database: %s", self.path)
        os.makedirs(self.path.parent, exist_ok=True)

        self.make_migrations()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} path={self.path}>"

    def timestamp(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc)

    @contextlib.contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """
        Open a connection for the duration of one operation.

        Commits on success, rolls back on error, always closes.
        """
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def make_migrations(self) -> None:
        """
        Create the pages collection if missing.
        """
        with self.connect() as conn:
            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {PAGE_COLLECTION_NAME} "
                "(id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, data JSON NOT NULL)"
            )

    def ensure_index(self, conn: sqlite3.Connection) -> None:
        """
        Make sure names are indexed, and unique ignoring case.
        """
        conn.execute(
            f"CREATE UNIQUE INDEX IF NOT EXISTS {PAGE_COLLECTION_NAME}_name "
            f"ON {PAGE_COLLECTION_NAME} (name COLLATE NOCASE)"
        )

    def row_to_page(self, row: sqlite3.Row) -> Page:
        return Page.from_dict(json.loads(row["data"]), id=row["id"])

    async def list_all_pages(self) -> list[Page]:
        """
        Get all pages, from the cache if there.
        """
        pages = self.cache.get(ALL_PAGES_KEY)
        if pages is not None:
            return pages

        with self.connect() as conn:
            cursor = conn.execute(f"SELECT id, data FROM {PAGE_COLLECTION_NAME}")
            pages = [self.row_to_page(row) for row in cursor.fetchall()]

        logger.debug("Loaded count=%d pages from database", len(pages))
        self.cache.set(ALL_PAGES_KEY, pages, self.cache_for)
        return pages

    async def get_page(self, name: str) -> Page | None:
        """
        Get a page by name, ignoring case. Always reads the database.
        """
        with self.connect() as conn:
            self.ensure_index(conn)
            cursor = conn.execute(
                f"SELECT id, data FROM {PAGE_COLLECTION_NAME} "
                "WHERE name = ? COLLATE NOCASE LIMIT 1",
                (name.lower(),),
            )
            row = cursor.fetchone()
        if row:
            return self.row_to_page(row)
        return None

    def find_by_id(self, conn: sqlite3.Connection, page_id: int) -> Page | None:
        cursor = conn.execute(
            f"SELECT id, data FROM {PAGE_COLLECTION_NAME} WHERE id = ?", (page_id,)
        )
        row = cursor.fetchone()
        if row:
            return self.row_to_page(row)
        return None

    async def save_page(self, page_input: PageInput) -> SaveResult:
        """
        Insert or update a page.

        Updates when `page_input.id` points to an existing page, inserts
        otherwise. Database errors are returned in the result, not raised.
        """
        name = self.sanitizer(normalize_name(page_input.name))
        content = self.sanitizer(page_input.content)

        if page_input.attachment is None:
            logger.info("Attachment is null")
        else:
            logger.info(
                "Attachment is not null filename=%s, not stored",
                page_input.attachment.filename,
            )

        try:
            with self.connect() as conn:
                self.ensure_index(conn)
                existing_page = None
                if page_input.id is not None:
                    existing_page = self.find_by_id(conn, page_input.id)

                if existing_page is None:
                    page = Page(name=name, content=content, last_modified=self.timestamp())
                    cursor = conn.execute(
                        f"INSERT INTO {PAGE_COLLECTION_NAME} (name, data) VALUES (?, ?)",
                        (page.name, json.dumps(page.to_dict())),
                    )
                    page.id = cursor.lastrowid
                    logger.info("Created page_id=%s name=%s", page.id, page.name)
                else:
                    page = dataclasses.replace(
                        existing_page,
                        name=name,
                        content=content,
                        last_modified=self.timestamp(),
                    )
                    conn.execute(
                        f"UPDATE {PAGE_COLLECTION_NAME} SET name = ?, data = ? WHERE id = ?",
                        (page.name, json.dumps(page.to_dict()), page.id),
                    )
                    logger.info("Updated page_id=%s name=%s", page.id, page.name)
        except (sqlite3.Error, OSError) as e:
            return SaveResult(ok=False, error=e)

        self.cache.remove(ALL_PAGES_KEY)
        return SaveResult(ok=True, page=page, previous=existing_page)
