"""
Извлечение статей через цепочку relay-сервисов
Pipeline: relay chain → html5lib parse → content heuristics → metadata → ArticleRecord
"""

from .errors import InvalidURLError
from .models import AccessibilityStatus, ArticleRecord, EnvelopeKind, ProgressStage, RelayProvider
from .probe import probe_accessibility
from .web_extractor import ArticleExtractor, extract_article

__all__ = [
    'AccessibilityStatus', 'ArticleExtractor', 'ArticleRecord', 'EnvelopeKind',
    'InvalidURLError', 'ProgressStage', 'RelayProvider', 'extract_article',
    'probe_accessibility',
]
