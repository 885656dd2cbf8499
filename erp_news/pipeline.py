import logging
from typing import List, Dict, Any, Optional

from .scraper.base_scraper import BaseScraper
from .scraper.feed_scraper import FeedScraper
from .scraper.html_scraper import HtmlScraper
from .scraper.fetcher import PageFetcher
from .scraper.news_sources import SourceRegistry
from .storage.adapter import PersistenceAdapter
from .storage.database import DatabaseManager
from .storage.models import Source, SourceResult

DEFAULT_BATCH_SIZE = 3

class CrawlPipeline:
    """Runs each active source through its scraper and reports a status per source."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        fetcher: Optional[PageFetcher] = None,
        http_config: Optional[Dict[str, Any]] = None,
        crawler_config: Optional[Dict[str, Any]] = None
    ):
        self.crawler_config = crawler_config or {}
        self.db_manager = db_manager
        self.registry = SourceRegistry(db_manager)
        self.adapter = PersistenceAdapter(db_manager)
        self.fetcher = fetcher or PageFetcher(http_config)
        self.default_batch_size = self.crawler_config.get('batch_size', DEFAULT_BATCH_SIZE)

        self.scrapers: Dict[str, BaseScraper] = {
            'rss': FeedScraper(self.fetcher, self.adapter, crawler_config=self.crawler_config),
            'html': HtmlScraper(self.fetcher, self.adapter, crawler_config=self.crawler_config),
        }
        self.logger = logging.getLogger('pipeline')

    def run(self, batch_size: Optional[int] = None, source_id: Optional[int] = None) -> List[SourceResult]:
        """Crawl active sources sequentially.

        With ``source_id`` only that source is crawled (if active). Otherwise
        ``batch_size`` limits the run to the first N sources; with neither
        argument every active source is crawled.
        """
        sources = self.registry.list_active_sources(source_id)
        if not sources:
            self.logger.info("No active sources to crawl")
            return []

        if source_id is None and batch_size is not None:
            sources = sources[:batch_size]

        self.logger.info(f"Starting crawl of {len(sources)} sources")
        results = [self.crawl_source(source) for source in sources]

        failed = sum(1 for result in results if not result.ok)
        self.logger.info(f"Crawl completed: {len(results) - failed} succeeded, {failed} failed")
        return results

    def crawl_source(self, source: Source) -> SourceResult:
        result = SourceResult(source=source.vendor, url=source.url)

        scraper = self.scrapers.get(source.type)
        if scraper is None:
            self.logger.error(f"Unknown source type {source.type!r} for {source.display_name}")
            result.status = 'error'
            result.error = f"Unknown source type: {source.type}"
            return result

        try:
            articles = scraper.crawl(source)
            result.articles = len(articles)
            result.new_articles = [article for article in articles if article.is_new]
            self.logger.info(
                f"{source.display_name}: {result.articles} articles, {len(result.new_articles)} new"
            )
        except Exception as e:
            self.logger.error(f"Error crawling {source.display_name} ({source.url}): {e}", exc_info=True)
            result.status = 'error'
            result.error = str(e)

        return result

    def run_new_items(self, batch_size: Optional[int] = None, source_id: Optional[int] = None) -> List[Dict[str, str]]:
        """Crawl a batch and return the articles created by it as ``{title, url, content}``."""
        if batch_size is None and source_id is None:
            batch_size = self.default_batch_size

        items = []
        for result in self.run(batch_size=batch_size, source_id=source_id):
            for article in result.new_articles:
                items.append({
                    'title': article.title,
                    'url': article.url,
                    'content': article.content or article.summary,
                })

        self.logger.info(f"Crawl produced {len(items)} new articles")
        return items

    def close(self):
        self.fetcher.close()
