import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .ai_detection import normalize_text, contains_phrase, is_ai_related

AI_INNOVATION = 'AI Innovation'
PRODUCT_LAUNCH = 'Product Launch'
SECURITY_UPDATE = 'Security Update'
MARKET_TREND = 'Market Trend'
PARTNERSHIP = 'Partnership'
ACQUISITION = 'Acquisition'
GENERAL = 'General'

CATEGORIES = [
    PRODUCT_LAUNCH, SECURITY_UPDATE, MARKET_TREND,
    PARTNERSHIP, ACQUISITION, AI_INNOVATION, GENERAL,
]

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    AI_INNOVATION: [
        'artificial intelligence', 'machine learning', 'ml', 'ai', 'deep learning',
        'neural network', 'nlp', 'natural language', 'computer vision',
        'predictive analytics', 'generative ai', 'genai', 'large language model', 'llm',
        'chatbot', 'copilot', 'chatgpt', 'gpt', 'ai agent', 'agentic',
        'automation', 'intelligent automation', 'cognitive computing',
        'ai-powered', 'ai-driven', 'ai-enabled', 'ai-based',
    ],
    PRODUCT_LAUNCH: [
        'launch', 'release', 'new feature', 'announce', 'introduce', 'unveil',
        'general availability', 'now available',
    ],
    SECURITY_UPDATE: [
        'security', 'vulnerability', 'vulnerabilities', 'patch', 'fix', 'fixes',
        'protection', 'privacy', 'cyber',
    ],
    MARKET_TREND: [
        'market', 'trend', 'industry', 'growth', 'forecast', 'future',
    ],
    PARTNERSHIP: [
        'partner', 'collaboration', 'alliance', 'joint venture',
    ],
    ACQUISITION: [
        'acquire', 'acquisition', 'merge', 'merger', 'takeover',
    ],
}

# tokens this short only match as whole words ("ai" must not hit "air")
_SHORT_TERM_LENGTH = 3

@dataclass
class CategorizationResult:
    categories: List[str] = field(default_factory=list)
    is_ai_related: bool = False

class Categorizer:
    """Keyword-driven multi-label topic tagging plus an independent AI-relevance flag."""

    def __init__(self, keywords: Optional[Dict[str, List[str]]] = None):
        self.keywords = keywords or CATEGORY_KEYWORDS
        self.logger = logging.getLogger('categorizer')

    def _matches(self, normalized_text: str, terms: List[str]) -> bool:
        for term in terms:
            phrase = normalize_text(term)
            whole_word = len(phrase) <= _SHORT_TERM_LENGTH
            if contains_phrase(normalized_text, phrase, whole_word=whole_word):
                return True
        return False

    def categorize(self, title: str, body: str = "", content: str = "") -> CategorizationResult:
        """Tag ``title`` + ``body``; the AI flag also looks at the full ``content``."""
        text = normalize_text(f"{title or ''} {body or ''}")
        categories = []

        if self._matches(text, self.keywords.get(AI_INNOVATION, [])):
            categories.append(AI_INNOVATION)

        for category, terms in self.keywords.items():
            if category in (AI_INNOVATION, GENERAL):
                continue
            if self._matches(text, terms):
                categories.append(category)

        if not categories:
            categories.append(GENERAL)

        self.logger.debug(f"Categorized {(title or '')[:50]!r} as {categories}")
        return CategorizationResult(
            categories=categories,
            is_ai_related=is_ai_related(f"{title or ''} {body or ''} {content or ''}")
        )
