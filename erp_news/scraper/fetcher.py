import time
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

import requests
from bs4 import BeautifulSoup

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

class SourceFetchError(Exception):
    """A feed or index page could not be retrieved; fatal for that source's run only."""

    def __init__(self, vendor: str, url: str, message: str):
        super().__init__(f"{vendor}: failed to fetch {url}: {message}")
        self.vendor = vendor
        self.url = url

@dataclass
class FetchResult:
    url: str
    content: bytes = b""
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.content, 'html.parser')

class PageFetcher:
    """Sequential HTTP client presenting a browser identity.

    ``fetch`` never raises: failures come back as a ``FetchResult`` with
    ``error`` set so callers decide whether to skip or abort.
    """

    def __init__(self, http_config: Optional[Dict[str, Any]] = None):
        http_config = http_config or {}
        self.timeout = http_config.get('timeout', 15)
        self.retry_attempts = max(1, http_config.get('retry_attempts', 2))
        self.backoff = http_config.get('backoff_seconds', 1)

        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': http_config.get('user_agent', DEFAULT_USER_AGENT),
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
        })

        self.logger = logging.getLogger('fetcher')

    def fetch(self, url: str) -> FetchResult:
        last_error = None
        status_code = None
        for attempt in range(self.retry_attempts):
            try:
                response = self.session.get(url, timeout=self.timeout)
                status_code = response.status_code
                response.raise_for_status()
                return FetchResult(url=url, content=response.content, status_code=status_code)

            except requests.RequestException as e:
                last_error = str(e)
                self.logger.warning(f"Attempt {attempt + 1} failed for {url}: {e}")
                if attempt < self.retry_attempts - 1:
                    time.sleep(self.backoff * (2 ** attempt))

        self.logger.error(f"Failed to fetch {url} after {self.retry_attempts} attempts")
        return FetchResult(url=url, status_code=status_code, error=last_error)

    def close(self):
        self.session.close()
