"""Per-vendor extraction strategies for the HTML path.

Each strategy knows how to find article permalinks on a vendor's index page
and how to pull an article out of one of its pages. Vendors without a
registered strategy fall back to ``GenericStrategy``; a new vendor is added
by subclassing ``VendorStrategy`` and decorating it with
``@register_strategy('<vendor>')``.
"""

import re
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Type
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .content_extractor import ContentExtractor
from .date_parser import try_parse_date, extract_date_from_url, is_plausible
from ..storage.models import Source
from ..utils.urls import resolve_url, link_key

@dataclass
class ArticleDraft:
    title: str = ""
    summary: str = ""
    content: str = ""
    image_url: Optional[str] = None
    published_at: Optional[datetime] = None

_STRATEGIES: Dict[str, Type['VendorStrategy']] = {}

def register_strategy(*vendors: str):
    def decorator(cls):
        for vendor in vendors:
            _STRATEGIES[vendor.lower()] = cls
        return cls
    return decorator

def get_strategy(source: Source, extractor: Optional[ContentExtractor] = None) -> 'VendorStrategy':
    strategy_cls = _STRATEGIES.get((source.vendor or '').lower(), GenericStrategy)
    return strategy_cls(source, extractor or ContentExtractor())

def registered_vendors() -> List[str]:
    return sorted(_STRATEGIES)

class VendorStrategy:
    link_selector = 'a[href]'
    link_patterns = [r'/news/', r'/announcement', r'/press-releases?/', r'\d{4}-\d{2}-\d{2}', r'/\d{4}/\d{2}/[^/]+']
    excluded_link_patterns = [
        r'/tag/', r'/tags/', r'/category/', r'/author/', r'/page/\d+', r'/feed/?$',
        r'/search', r'/subscribe', r'/rss', r'\.(pdf|jpe?g|png|gif|zip)$',
    ]
    title_selectors = ['main h1', 'article h1', '.content h1', 'h1']
    container_selectors = ['article', 'main', '.content', 'body']
    date_selectors = ['time[datetime]', 'time', '.date', '.publish-date', '.news-date']
    content_selector: Optional[str] = None
    image_container = 'article'
    excluded_images: List[str] = []

    def __init__(self, source: Source, extractor: ContentExtractor):
        self.source = source
        self.selectors = source.selectors or {}
        self.extractor = extractor
        self.logger = logging.getLogger(f'scraper.{source.vendor}')

        pattern = self.selectors.get('link_pattern')
        self._link_patterns = [pattern] if pattern else list(self.link_patterns)

    # link discovery

    def discover_links(self, soup: BeautifulSoup, base_url: str) -> List[str]:
        selector = self.selectors.get('article_links', self.link_selector)
        links = []
        try:
            elements = soup.select(selector)
        except Exception as e:
            self.logger.error(f"Error extracting article links with {selector!r}: {e}")
            return links

        index_key = link_key(base_url)
        for element in elements:
            href = element.get('href')
            if element.name != 'a' and not href:
                anchor = element.find('a', href=True)
                href = anchor.get('href') if anchor else None
            full_url = resolve_url(href, base_url)
            if not full_url or link_key(full_url) == index_key:
                continue
            if self.is_article_link(full_url, base_url):
                links.append(full_url)
        return links

    def is_article_link(self, url: str, base_url: str) -> bool:
        if not self._same_site(url, base_url):
            return False
        path = urlparse(url).path
        if any(re.search(p, path, re.IGNORECASE) for p in self.excluded_link_patterns):
            return False
        return any(re.search(p, url, re.IGNORECASE) for p in self._link_patterns)

    @staticmethod
    def _same_site(url: str, base_url: str) -> bool:
        def host(value):
            netloc = urlparse(value).netloc.lower()
            return netloc[4:] if netloc.startswith('www.') else netloc
        url_host, base_host = host(url), host(base_url)
        return url_host == base_host or url_host.endswith('.' + base_host) or base_host.endswith('.' + url_host)

    # article extraction

    def extract_article(self, soup: BeautifulSoup, url: str) -> ArticleDraft:
        draft = ArticleDraft()
        draft.title = self.extract_title(soup)
        draft.summary = self.extract_summary(soup)
        draft.published_at = self.extract_date(soup, url)
        draft.image_url = self.extract_image(soup, url)
        # content extraction strips noise from the tree, so it runs last
        draft.content = self.extract_content(soup)
        return draft

    def extract_title(self, soup: BeautifulSoup) -> str:
        selectors = list(self.title_selectors)
        if self.selectors.get('title'):
            selectors.insert(0, self.selectors['title'])

        for selector in selectors:
            element = self._select_one(soup, selector)
            if element:
                title = self._text(element)
                if title:
                    return title

        title = self.extractor.extract_meta(soup, 'og:title', 'twitter:title')
        if title:
            return title

        title_tag = soup.find('title')
        return self._text(title_tag) if title_tag else ""

    def extract_summary(self, soup: BeautifulSoup) -> str:
        if self.selectors.get('summary'):
            element = self._select_one(soup, self.selectors['summary'])
            if element and self._text(element):
                return self._text(element)

        summary = self.extractor.extract_meta(soup, 'description', 'og:description', 'twitter:description')
        if summary:
            return self.extractor.clean_text(summary)

        heading = soup.find('h1')
        if heading:
            paragraph = heading.find_next('p')
            if paragraph and len(self._text(paragraph)) > 20:
                return self._text(paragraph)

        return self.extractor.first_paragraph(self._container(soup))

    def extract_date(self, soup: BeautifulSoup, url: str) -> datetime:
        candidates = []

        url_date = extract_date_from_url(url, allow_month_only=False)
        if url_date:
            candidates.append(url_date)

        selectors = list(self.date_selectors)
        if self.selectors.get('date'):
            selectors.insert(0, self.selectors['date'])
        for selector in selectors:
            element = self._select_one(soup, selector)
            if element:
                raw = element.get('datetime') or self._text(element)
                if raw:
                    candidates.append(raw)
                    break

        meta_date = self.extractor.extract_meta(soup, 'article:published_time', 'og:published_time', 'date')
        if meta_date:
            candidates.append(meta_date)

        month_date = extract_date_from_url(url)
        if month_date:
            candidates.append(month_date)

        for candidate in candidates:
            published_at = try_parse_date(candidate)
            if is_plausible(published_at):
                return published_at
            self.logger.warning(f"Unusable publish date {candidate!r} for {url}")

        self.logger.warning(f"No valid publish date found for {url}, using current time")
        return datetime.now(timezone.utc)

    def extract_image(self, soup: BeautifulSoup, url: str) -> Optional[str]:
        container = self.selectors.get('image', self.image_container)
        return self.extractor.extract_image(soup, url, container=container, excluded=self.excluded_images)

    def extract_content(self, soup: BeautifulSoup) -> str:
        return self.extractor.extract_content(soup, self.selectors.get('content') or self.content_selector)

    # helpers

    def _container(self, soup: BeautifulSoup):
        for selector in self.container_selectors:
            element = self._select_one(soup, selector)
            if element:
                return element
        return None

    def _select_one(self, soup: BeautifulSoup, selector: str):
        try:
            return soup.select_one(selector)
        except Exception as e:
            self.logger.warning(f"Invalid selector {selector!r}: {e}")
            return None

    @staticmethod
    def _text(element) -> str:
        return re.sub(r'\s+', ' ', element.get_text(" ", strip=True)).strip()

class GenericStrategy(VendorStrategy):
    pass

@register_strategy('SAP')
class SAPStrategy(VendorStrategy):
    # news.sap.com/2024/03/slug/
    link_patterns = [r'/\d{4}/\d{2}/[^/]+']
    title_selectors = ['article h1', '.entry-title', 'h1']
    content_selector = '.entry-content'
    excluded_images = [r'sap[-_]?logo', r'/sap\.png']

@register_strategy('Oracle')
class OracleStrategy(VendorStrategy):
    # oracle.com/news/announcement/slug-2024-03-08/
    link_patterns = [r'/news/announcement/']
    title_selectors = ['.cb27w1 h1', 'main h1', 'h1']
    date_selectors = ['.cb27w1 .date', 'time', '.date']
    excluded_images = [r'oracle[-_]?logo', r'/o-logo', r'oracle-o']

@register_strategy('Microsoft')
class MicrosoftStrategy(VendorStrategy):
    # news.microsoft.com/source/2024/03/08/slug/ and /2024/03/08/slug/
    link_patterns = [r'/\d{4}/\d{2}/\d{2}/[^/]+', r'/features/[^/]+']
    content_selector = '.entry-content'
    excluded_images = [r'microsoft[-_]?logo', r'msft[-_]?logo']

@register_strategy('Workday')
class WorkdayStrategy(VendorStrategy):
    # newsroom.workday.com/2024-03-08-Workday-Announces-...
    link_patterns = [r'/\d{4}-\d{2}-\d{2}-[^/]+', r'/newsroom/']
    title_selectors = ['.wd_title', 'main h1', 'h1']
    date_selectors = ['.wd_date', 'time', '.date']
    content_selector = '.wd_body'
    excluded_images = [r'workday[-_]?logo']

@register_strategy('Unit4')
class Unit4Strategy(VendorStrategy):
    link_patterns = [r'/news/[^/]+', r'/press-releases?/[^/]+']
    excluded_images = [r'unit4[-_]?logo']

@register_strategy('Infor')
class InforStrategy(VendorStrategy):
    link_patterns = [r'/news/[^/]+']
    date_selectors = ['.news-date', 'time', '.date']
    excluded_images = [r'infor[-_]?logo']

@register_strategy('Forterro')
class ForterroStrategy(VendorStrategy):
    link_selector = '.news-item a[href], a[href]'
    link_patterns = [r'/news/[^/]+']
    title_selectors = ['.news-title', 'main h1', 'h1']
    date_selectors = ['.news-date', 'time', '.date']
    excluded_images = [r'forterro[-_]?logo']

@register_strategy('Epicor')
class EpicorStrategy(VendorStrategy):
    link_patterns = [r'/news/news-releases/[^/]+', r'/press-releases?/[^/]+']
    excluded_images = [r'epicor[-_]?logo']

@register_strategy('IFS')
class IFSStrategy(VendorStrategy):
    link_patterns = [r'/news/press-releases/[^/]+', r'/news/[^/]+']
    excluded_images = [r'ifs[-_]?logo']
