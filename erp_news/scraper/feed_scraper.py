import logging
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any

import feedparser

from .base_scraper import BaseScraper
from .content_extractor import ContentExtractor
from .date_parser import parse_date
from .fetcher import PageFetcher, SourceFetchError
from ..processor.categorizer import Categorizer
from ..storage.adapter import PersistenceAdapter
from ..storage.models import Article, Source
from ..utils.urls import resolve_url

# feeds from these vendors carry no usable image, so the article page is consulted
DEFAULT_IMAGE_LOOKUP_VENDORS = ['VentureBeat', 'TechCrunch']

class FeedScraper(BaseScraper):
    def __init__(
        self,
        fetcher: PageFetcher,
        adapter: PersistenceAdapter,
        content_extractor: Optional[ContentExtractor] = None,
        categorizer: Optional[Categorizer] = None,
        crawler_config: Optional[Dict[str, Any]] = None
    ):
        super().__init__(fetcher, adapter, content_extractor, categorizer, crawler_config)
        vendors = (crawler_config or {}).get('image_lookup_vendors', DEFAULT_IMAGE_LOOKUP_VENDORS)
        self.image_lookup_vendors = {vendor.lower() for vendor in vendors}

    def crawl(self, source: Source) -> List[Article]:
        logger = self.get_logger(source)
        logger.info(f"Attempting to fetch RSS feed from {source.url}")

        result = self.fetcher.fetch(source.url)
        if not result.ok:
            raise SourceFetchError(source.vendor, source.url, result.error)

        feed = feedparser.parse(result.content)
        if feed.bozo and not feed.entries:
            raise SourceFetchError(source.vendor, source.url, f"unparseable feed: {feed.get('bozo_exception')}")

        self.adapter.touch_source_last_crawled(source.id)

        entries = feed.entries
        logger.info(f"Successfully fetched feed for {source.vendor}. Found {len(entries)} items")
        if not entries:
            logger.warning(f"No items found in feed for {source.vendor}")
            return []

        feed_title = feed.feed.get('title') or source.display_name
        articles = []
        for index, entry in enumerate(entries[:self.max_articles]):
            try:
                self.pause(index)
                article = self._process_entry(entry, source, feed_title, logger)
                if article:
                    articles.append(article)
            except Exception as e:
                logger.error(f"Error processing item from {source.vendor}: {e}")

        logger.info(f"Stored {len(articles)} articles from {source.vendor}")
        return articles

    def _process_entry(self, entry, source: Source, feed_title: str, logger: logging.Logger) -> Optional[Article]:
        title = (entry.get('title') or '').strip()
        url = resolve_url(entry.get('link'), source.url)
        if not title or not url:
            logger.warning(f"Skipping article from {source.vendor} - missing required fields")
            return None

        logger.debug(f"Processing article: {title}")

        summary = self.content_extractor.clean_text(entry.get('summary') or '')
        image_url = self._feed_image(entry, url)
        content = ""

        page = self.fetch_page(url, logger)
        if page is not None:
            if image_url is None and source.vendor.lower() in self.image_lookup_vendors:
                image_url = self.content_extractor.extract_image(page, url)
                logger.debug(f"Found image for article: {image_url}")
            content = self.content_extractor.extract_content(page, source.selectors.get('content'))

        if not content:
            content = self._feed_content(entry)

        article = Article(
            title=title,
            summary=summary,
            content=content,
            url=url,
            image_url=image_url,
            published_at=self._published_at(entry, logger),
            vendor=source.vendor,
            source=feed_title,
            source_id=source.id,
        )
        self.classify(article)

        if not self.persist(article, source):
            return None
        return article

    def _published_at(self, entry, logger: logging.Logger) -> datetime:
        raw = entry.get('published') or entry.get('updated') or entry.get('pubDate')
        if raw:
            return parse_date(raw)

        parsed = entry.get('published_parsed') or entry.get('updated_parsed')
        if parsed:
            return datetime(*parsed[:6], tzinfo=timezone.utc)

        logger.warning(f"No publish date on feed entry {entry.get('link')}, using current time")
        return datetime.now(timezone.utc)

    @staticmethod
    def _feed_image(entry, base_url: str) -> Optional[str]:
        candidates: List[Dict[str, Any]] = []
        candidates.extend(entry.get('media_content') or [])
        candidates.extend(entry.get('media_thumbnail') or [])

        for media in candidates:
            medium = media.get('medium') or media.get('type') or 'image'
            if 'image' in medium:
                image_url = resolve_url(media.get('url'), base_url)
                if image_url:
                    return image_url

        for enclosure in entry.get('enclosures') or []:
            if (enclosure.get('type') or '').startswith('image/'):
                image_url = resolve_url(enclosure.get('href') or enclosure.get('url'), base_url)
                if image_url:
                    return image_url

        return None

    @staticmethod
    def _feed_content(entry) -> str:
        for block in entry.get('content') or []:
            value = (block.get('value') or '').strip()
            if value:
                return value
        return ""
