from typing import List, Optional

from .base_scraper import BaseScraper
from .fetcher import SourceFetchError
from .strategies import VendorStrategy, get_strategy
from ..storage.models import Article, Source
from ..utils.urls import dedupe_links

class HtmlScraper(BaseScraper):
    """Crawls a vendor's news index page and each article it links to."""

    def crawl(self, source: Source) -> List[Article]:
        logger = self.get_logger(source)
        logger.info(f"Scraping news index for {source.vendor} from {source.url}")

        result = self.fetcher.fetch(source.url)
        if not result.ok:
            raise SourceFetchError(source.vendor, source.url, result.error)

        self.adapter.touch_source_last_crawled(source.id)

        strategy = get_strategy(source, self.content_extractor)
        links = dedupe_links(strategy.discover_links(result.soup(), source.url))
        logger.info(f"Found {len(links)} article links for {source.vendor}")

        if len(links) > self.max_articles:
            logger.info(f"Limiting {source.vendor} to {self.max_articles} articles")
            links = links[:self.max_articles]

        articles = []
        for index, link in enumerate(links):
            try:
                self.pause(index)
                article = self._process_link(link, source, strategy)
                if article:
                    articles.append(article)
            except Exception as e:
                logger.error(f"Error processing article {link}: {e}")

        logger.info(f"Stored {len(articles)} articles from {source.vendor}")
        return articles

    def _process_link(self, url: str, source: Source, strategy: VendorStrategy) -> Optional[Article]:
        logger = self.get_logger(source)
        soup = self.fetch_page(url, logger)
        if soup is None:
            return None

        draft = strategy.extract_article(soup, url)
        if not draft.title:
            logger.warning(f"No title found for {url}, skipping")
            return None

        article = Article(
            title=draft.title,
            summary=draft.summary,
            content=draft.content,
            url=url,
            image_url=draft.image_url,
            published_at=draft.published_at,
            vendor=source.vendor,
            source=source.display_name,
            source_id=source.id,
        )
        self.classify(article)

        if not self.persist(article, source):
            return None
        return article
