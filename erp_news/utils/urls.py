import re
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlparse

LOCALE_PREFIXES = (
    'fr', 'de', 'es', 'it', 'ja', 'jp', 'pt', 'nl', 'zh', 'ko', 'sv', 'pl',
    'fr-fr', 'de-de', 'es-es', 'it-it', 'ja-jp', 'pt-br', 'nl-nl', 'zh-cn',
)

_LOCALE_RE = re.compile(r'^/(%s)(/|$)' % '|'.join(re.escape(p) for p in LOCALE_PREFIXES), re.IGNORECASE)

def is_absolute_url(url: Optional[str]) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc) and ' ' not in url.strip()

def resolve_url(href: Optional[str], base_url: str) -> Optional[str]:
    """Resolve ``href`` against ``base_url``; None when the result is not an absolute http(s) URL."""
    if not href:
        return None
    href = href.strip()
    if href.startswith(('javascript:', 'mailto:', 'tel:', '#')):
        return None
    if href.startswith('//'):
        href = f"{urlparse(base_url).scheme or 'https'}:{href}"
    try:
        full_url = urljoin(base_url, href)
    except ValueError:
        return None
    return full_url if is_absolute_url(full_url) else None

def has_locale_prefix(url: str) -> bool:
    path = urlparse(url).path
    return bool(_LOCALE_RE.match(path))

def link_key(url: str) -> str:
    """Dedup key: lowercase, no scheme, no ``www.``, no query/fragment, no trailing slash."""
    parsed = urlparse(url.strip().lower())
    host = parsed.netloc
    if host.startswith('www.'):
        host = host[4:]
    return f"{host}{parsed.path}".rstrip('/')

def dedupe_links(urls: Iterable[str]) -> List[str]:
    """Drop locale mirrors and links that share a dedup key, keeping discovery order."""
    seen = set()
    unique = []
    for url in urls:
        if has_locale_prefix(url):
            continue
        key = link_key(url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(url)
    return unique
