import sqlite3
import os
import json
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from contextlib import contextmanager

from .models import Article, Source

class DatabaseManager:
    """SQLite store client holding the ``sources`` and ``articles`` collections.

    Articles are keyed by ``url``; every write is an upsert, so overlapping
    crawl runs never produce duplicate rows.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        self.logger = logging.getLogger('storage')
        self._init_database()

    def _init_database(self):
        with self.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS sources (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT,
                    url TEXT UNIQUE NOT NULL,
                    vendor TEXT NOT NULL,
                    type TEXT NOT NULL CHECK (type IN ('rss', 'html')),
                    active BOOLEAN DEFAULT TRUE,
                    last_crawled TIMESTAMP,
                    scraping_config TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS articles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    summary TEXT,
                    content TEXT,
                    url TEXT UNIQUE NOT NULL,
                    image_url TEXT,
                    published_at TIMESTAMP,
                    vendor TEXT,
                    source TEXT,
                    source_id INTEGER,
                    categories TEXT,
                    is_ai_related BOOLEAN DEFAULT FALSE,
                    crawled_at TIMESTAMP,
                    FOREIGN KEY (source_id) REFERENCES sources (id)
                )
            ''')

            cursor.execute('CREATE INDEX IF NOT EXISTS idx_articles_vendor ON articles(vendor)')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_articles_published ON articles(published_at)')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_articles_ai ON articles(is_ai_related)')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_sources_active ON sources(active)')

            conn.commit()

    @contextmanager
    def get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def add_source(self, source: Source) -> Optional[int]:
        """Insert a source unless one with the same URL exists; returns the new id or None."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT OR IGNORE INTO sources
                (name, url, vendor, type, active, scraping_config)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (
                source.name, source.url, source.vendor, source.type, source.active,
                json.dumps(source.selectors) if source.selectors else None
            ))
            conn.commit()
            return cursor.lastrowid if cursor.rowcount else None

    def get_sources(self, active_only: bool = True, source_id: Optional[int] = None) -> List[Source]:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            query = "SELECT * FROM sources"
            clauses = []
            params = []
            if active_only:
                clauses.append("active = TRUE")
            if source_id is not None:
                clauses.append("id = ?")
                params.append(source_id)
            if clauses:
                query += " WHERE " + " AND ".join(clauses)
            query += " ORDER BY id"

            cursor.execute(query, params)
            return [self._row_to_source(row) for row in cursor.fetchall()]

    def touch_source_last_crawled(self, source_id: int, timestamp: Optional[datetime] = None):
        timestamp = timestamp or datetime.now(timezone.utc)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                'UPDATE sources SET last_crawled = ? WHERE id = ?',
                (timestamp.isoformat(), source_id)
            )
            conn.commit()

    def upsert_article(self, article: Article) -> Tuple[int, bool]:
        """Insert or fully replace the row stored under ``article.url``.

        Returns the row id and whether the row was created by this call.
        Raises ``sqlite3.Error`` on store failure.
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT id FROM articles WHERE url = ?', (article.url,))
            existing = cursor.fetchone()

            cursor.execute('''
                INSERT INTO articles
                (title, summary, content, url, image_url, published_at, vendor,
                 source, source_id, categories, is_ai_related, crawled_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(url) DO UPDATE SET
                    title = excluded.title,
                    summary = excluded.summary,
                    content = excluded.content,
                    image_url = excluded.image_url,
                    published_at = excluded.published_at,
                    vendor = excluded.vendor,
                    source = excluded.source,
                    source_id = excluded.source_id,
                    categories = excluded.categories,
                    is_ai_related = excluded.is_ai_related,
                    crawled_at = excluded.crawled_at
            ''', (
                article.title, article.summary, article.content, article.url,
                article.image_url,
                article.published_at.isoformat() if article.published_at else None,
                article.vendor, article.source, article.source_id,
                json.dumps(list(article.categories)), article.is_ai_related,
                datetime.now(timezone.utc).isoformat()
            ))
            conn.commit()

            if existing:
                return existing['id'], False
            return cursor.lastrowid, True

    def get_articles(
        self,
        limit: int = 50,
        offset: int = 0,
        vendor: Optional[str] = None,
        category: Optional[str] = None,
        ai_only: bool = False
    ) -> List[Article]:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            query = "SELECT * FROM articles"
            clauses = []
            params = []

            if vendor:
                clauses.append("vendor = ?")
                params.append(vendor)
            if category:
                clauses.append("categories LIKE ?")
                params.append(f'%{json.dumps(category)}%')
            if ai_only:
                clauses.append("is_ai_related = TRUE")
            if clauses:
                query += " WHERE " + " AND ".join(clauses)

            query += " ORDER BY published_at DESC LIMIT ? OFFSET ?"
            params.extend([limit, offset])

            cursor.execute(query, params)
            return [self._row_to_article(row) for row in cursor.fetchall()]

    def get_article_by_url(self, url: str) -> Optional[Article]:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM articles WHERE url = ?", (url,))
            row = cursor.fetchone()
            return self._row_to_article(row) if row else None

    def get_article_count(self) -> int:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM articles')
            return cursor.fetchone()[0]

    @staticmethod
    def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _row_to_source(self, row: sqlite3.Row) -> Source:
        return Source(
            id=row['id'],
            name=row['name'] or "",
            url=row['url'],
            vendor=row['vendor'],
            type=row['type'],
            active=bool(row['active']),
            last_crawled=self._parse_timestamp(row['last_crawled']),
            selectors=json.loads(row['scraping_config']) if row['scraping_config'] else {}
        )

    def _row_to_article(self, row: sqlite3.Row) -> Article:
        return Article(
            id=row['id'],
            title=row['title'],
            summary=row['summary'] or "",
            content=row['content'] or "",
            url=row['url'],
            image_url=row['image_url'],
            published_at=self._parse_timestamp(row['published_at']),
            vendor=row['vendor'] or "",
            source=row['source'] or "",
            source_id=row['source_id'],
            categories=json.loads(row['categories']) if row['categories'] else [],
            is_ai_related=bool(row['is_ai_related'])
        )
