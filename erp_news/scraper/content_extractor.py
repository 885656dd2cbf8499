import re
import logging
from typing import Iterable, List, Optional
from bs4 import BeautifulSoup, Tag

from ..utils.urls import resolve_url

CONTENT_SELECTORS = [
    'article .content',
    '.article-content',
    '.news-content',
    'article .body',
    '.press-release-content',
    'article p',
    '.article-body',
    '.post-content',
]

NOISE_SELECTORS = 'script, style, .social-share, .related-articles, nav'

IMAGE_META = [
    ('property', 'og:image'),
    ('name', 'twitter:image'),
    ('property', 'twitter:image'),
]

# branding chrome that must never be stored as an article image
BOILERPLATE_IMAGE_PATTERNS = [
    r'logo', r'sprite', r'favicon', r'/icons?/', r'placeholder',
    r'pixel\.gif', r'spacer\.gif', r'avatar', r'\.svg(\?|$)',
]

class ContentExtractor:
    def __init__(self, content_selectors: Optional[List[str]] = None):
        self.content_selectors = content_selectors or CONTENT_SELECTORS
        self.logger = logging.getLogger('content_extractor')

    def extract_content(self, soup: BeautifulSoup, preferred_selector: Optional[str] = None) -> str:
        """Return the inner markup of the main article body, or ``""``."""
        selectors = list(self.content_selectors)
        if preferred_selector:
            selectors.insert(0, preferred_selector)

        for selector in selectors:
            try:
                matches = soup.select(selector)
            except Exception as e:
                self.logger.warning(f"Invalid content selector {selector!r}: {e}")
                continue
            if not matches:
                continue

            for element in matches:
                for noise in element.select(NOISE_SELECTORS):
                    noise.decompose()

            content = matches[0].decode_contents().strip()
            if content:
                return content

        article = soup.find('article')
        if article:
            paragraphs = [p.decode_contents().strip() for p in article.find_all('p')]
            paragraphs = [p for p in paragraphs if p]
            if paragraphs:
                return '\n'.join(paragraphs)

        return ""

    def extract_meta(self, soup: BeautifulSoup, *names: str) -> Optional[str]:
        """Content of the first ``<meta property=...>`` or ``<meta name=...>`` among ``names``."""
        for name in names:
            for attr in ('property', 'name'):
                tag = soup.find('meta', attrs={attr: name})
                if tag and tag.get('content', '').strip():
                    return tag['content'].strip()
        return None

    def extract_image(
        self,
        soup: BeautifulSoup,
        base_url: str,
        container: str = 'article',
        excluded: Iterable[str] = ()
    ) -> Optional[str]:
        """og:image / twitter:image first, then the first usable ``<img>`` in ``container``."""
        patterns = list(BOILERPLATE_IMAGE_PATTERNS) + list(excluded)

        for attr, name in IMAGE_META:
            tag = soup.find('meta', attrs={attr: name})
            if tag:
                image_url = resolve_url(tag.get('content'), base_url)
                if image_url and not self._is_boilerplate(image_url, patterns):
                    return image_url

        try:
            images = soup.select(f'{container} img')
        except Exception:
            images = []
        for img in images:
            image_url = resolve_url(self._image_source(img), base_url)
            if image_url and not self._is_boilerplate(image_url, patterns):
                return image_url

        return None

    def first_paragraph(self, scope: Optional[Tag]) -> str:
        if scope is None:
            return ""
        for p in scope.find_all('p'):
            text = p.get_text(" ", strip=True)
            if len(text) > 20:
                return self.clean_text(text)
        return ""

    def clean_text(self, text: str) -> str:
        text = re.sub(r'<[^>]+>', '', text)
        text = re.sub(r'\n+', ' ', text)
        text = re.sub(r'\s+', ' ', text)
        text = text.strip()
        return text

    @staticmethod
    def _image_source(img: Tag) -> Optional[str]:
        for attr in ('src', 'data-src', 'data-lazy-src'):
            value = img.get(attr)
            if value and not value.startswith('data:'):
                return value
        return None

    @staticmethod
    def _is_boilerplate(url: str, patterns: List[str]) -> bool:
        return any(re.search(pattern, url, re.IGNORECASE) for pattern in patterns)
