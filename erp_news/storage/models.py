from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any

SOURCE_TYPES = ('rss', 'html')

@dataclass
class Source:
    id: Optional[int] = None
    url: str = ""
    vendor: str = ""
    type: str = "rss"
    active: bool = True
    last_crawled: Optional[datetime] = None
    name: str = ""
    selectors: Dict[str, str] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.name or self.vendor

@dataclass
class Article:
    id: Optional[int] = None
    title: str = ""
    summary: str = ""
    content: str = ""
    url: str = ""
    image_url: Optional[str] = None
    published_at: Optional[datetime] = None
    vendor: str = ""
    source: str = ""
    source_id: Optional[int] = None
    categories: List[str] = field(default_factory=list)
    is_ai_related: bool = False
    # set by the store when an upsert created the row
    is_new: bool = False

@dataclass
class SourceResult:
    source: str
    url: str
    status: str = "success"
    error: Optional[str] = None
    articles: int = 0
    new_articles: List[Article] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'source': self.source,
            'url': self.url,
            'status': self.status,
            'articles': self.articles,
        }
        if self.error:
            result['error'] = self.error
        return result
