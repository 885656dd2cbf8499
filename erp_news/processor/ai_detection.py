import re
from typing import List

# Bare "ai"/"ml" are absent: on their own they only count when
# corroborated by one of RELATED_TERMS.
AI_KEYWORDS = [
    # Core AI terms
    'artificial intelligence',
    'machine learning',
    'deep learning',
    'neural network',

    # Modern AI
    'generative ai',
    'gen ai',
    'genai',
    'large language model',
    'llm',
    'chatgpt',
    'gpt',
    'copilot',
    'openai',
    'bard',
    'claude',
    'gemini',
    'agentic ai',
    'ai agent',
    'ai agents',

    # AI Applications
    'ai-powered',
    'ai-driven',
    'ai-enabled',
    'ai-based',
    'ai capabilities',
    'ai features',
    'ai technology',
    'ai solution',
    'ai assistant',

    # Business AI
    'intelligent automation',
    'cognitive computing',
    'predictive analytics',
    'natural language processing',
    'nlp',
    'robotic process automation',
    'rpa',
    'automated workflow',
    'smart automation',
    'intelligent process',
    'ai transformation',
    'digital assistant',
    'virtual assistant',
    'intelligent assistant',
    'conversational ai',
    'ai analytics',
    'predictive intelligence',

    # ERP-specific AI
    'intelligent erp',
    'smart erp',
    'ai integration',
    'automated decision',
    'intelligent decision',
    'smart decision',
    'predictive maintenance',
    'automated reporting',
    'intelligent insights',
    'smart insights',
    'automated processing',
    'intelligent processing',
]

BARE_AI_TERMS = ['ai', 'artificial intelligence', 'machine learning']

RELATED_TERMS = [
    'automation',
    'intelligence',
    'smart',
    'cognitive',
    'predictive',
    'automated',
    'processing',
    'analytics',
    'insight',
]

def normalize_text(text: str) -> str:
    """Lowercase, punctuation to whitespace, collapsed whitespace."""
    text = re.sub(r'[^a-z0-9\s]', ' ', (text or '').lower())
    return re.sub(r'\s+', ' ', text).strip()

def contains_phrase(normalized_text: str, phrase: str, whole_word: bool = True) -> bool:
    """Word-anchored containment on already-normalized text.

    ``whole_word=False`` still anchors at a word start but lets the phrase
    run into a longer word ("launch" matches "launches").
    """
    phrase = normalize_text(phrase)
    if not phrase or not normalized_text:
        return False
    padded = f" {normalized_text} "
    if whole_word:
        return f" {phrase} " in padded
    return f" {phrase}" in padded

def get_ai_keywords(text: str) -> List[str]:
    """AI keyword-list phrases present in ``text``."""
    cleaned = normalize_text(text)
    return [keyword for keyword in AI_KEYWORDS if contains_phrase(cleaned, keyword)]

def is_ai_related(text: str) -> bool:
    if not text:
        return False

    cleaned = normalize_text(text)

    if any(contains_phrase(cleaned, keyword) for keyword in AI_KEYWORDS):
        return True

    if any(contains_phrase(cleaned, term) for term in BARE_AI_TERMS):
        return any(contains_phrase(cleaned, term, whole_word=False) for term in RELATED_TERMS)

    return False
