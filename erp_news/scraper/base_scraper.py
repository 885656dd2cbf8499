import time
import logging
from typing import List, Dict, Optional, Any

from bs4 import BeautifulSoup

from .fetcher import PageFetcher
from .content_extractor import ContentExtractor
from ..processor.categorizer import Categorizer
from ..storage.adapter import PersistenceAdapter
from ..storage.models import Article, Source

class BaseScraper:
    """Plumbing shared by the feed and HTML paths: fetching, categorizing and persisting."""

    def __init__(
        self,
        fetcher: PageFetcher,
        adapter: PersistenceAdapter,
        content_extractor: Optional[ContentExtractor] = None,
        categorizer: Optional[Categorizer] = None,
        crawler_config: Optional[Dict[str, Any]] = None
    ):
        crawler_config = crawler_config or {}
        self.fetcher = fetcher
        self.adapter = adapter
        self.content_extractor = content_extractor or ContentExtractor()
        self.categorizer = categorizer or Categorizer()
        self.max_articles = crawler_config.get('max_articles', 20)
        self.request_delay = crawler_config.get('request_delay', 0)

    def crawl(self, source: Source) -> List[Article]:
        raise NotImplementedError

    def get_logger(self, source: Source) -> logging.Logger:
        return logging.getLogger(f'scraper.{source.vendor}')

    def fetch_page(self, url: str, logger: logging.Logger) -> Optional[BeautifulSoup]:
        """Best-effort article page fetch; None when the page is unavailable."""
        result = self.fetcher.fetch(url)
        if not result.ok:
            logger.warning(f"Could not fetch article page {url}: {result.error}")
            return None
        return result.soup()

    def classify(self, article: Article):
        body_text = self.content_extractor.clean_text(article.content) if article.content else ""
        result = self.categorizer.categorize(article.title, article.summary, body_text)
        article.categories = result.categories
        article.is_ai_related = result.is_ai_related

    def persist(self, article: Article, source: Source) -> bool:
        if not self.adapter.upsert_article(article):
            return False
        self.adapter.touch_source_last_crawled(source.id)
        return True

    def pause(self, index: int):
        if index > 0 and self.request_delay:
            time.sleep(self.request_delay)
