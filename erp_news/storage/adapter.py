import sqlite3
import logging
from datetime import datetime, timezone
from typing import Optional

from .database import DatabaseManager
from .models import Article
from ..utils.urls import is_absolute_url

DEFAULT_CATEGORY = 'General'

class PersistenceAdapter:
    """Canonicalizes crawled records and writes them through the store client."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.logger = logging.getLogger('storage.adapter')

    def canonicalize(self, article: Article) -> Optional[Article]:
        """Return the article ready for storage, or None when it must be rejected."""
        article.title = (article.title or "").strip()
        article.url = (article.url or "").strip()
        article.summary = (article.summary or "").strip()
        article.content = (article.content or "").strip()

        if not article.title:
            self.logger.warning(f"Rejecting article without title: {article.url or '<no url>'}")
            return None
        if not is_absolute_url(article.url):
            self.logger.warning(f"Rejecting article with unresolvable url {article.url!r}: {article.title[:50]}")
            return None

        if article.image_url is not None:
            article.image_url = article.image_url.strip()
            if not is_absolute_url(article.image_url):
                self.logger.warning(f"Dropping invalid image url {article.image_url!r} for {article.url}")
                article.image_url = None

        if not article.categories:
            article.categories = [DEFAULT_CATEGORY]

        if article.published_at is None:
            article.published_at = datetime.now(timezone.utc)
        elif article.published_at.tzinfo is None:
            article.published_at = article.published_at.replace(tzinfo=timezone.utc)
        else:
            article.published_at = article.published_at.astimezone(timezone.utc)

        return article

    def upsert_article(self, article: Article) -> bool:
        """Insert or replace the article keyed by URL; False when rejected or the store failed."""
        if self.canonicalize(article) is None:
            return False

        try:
            article.id, article.is_new = self.db_manager.upsert_article(article)
        except sqlite3.Error as e:
            self.logger.error(f"Error upserting article {article.url}: {e}")
            return False

        action = "Inserted" if article.is_new else "Updated"
        self.logger.info(f"{action} article from {article.vendor}: {article.title[:80]}")
        return True

    def touch_source_last_crawled(self, source_id: Optional[int], timestamp: Optional[datetime] = None):
        if source_id is None:
            return
        try:
            self.db_manager.touch_source_last_crawled(source_id, timestamp)
        except sqlite3.Error as e:
            self.logger.error(f"Error updating last_crawled for source {source_id}: {e}")
