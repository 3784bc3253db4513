"""Category analyzers."""

from .authority import AuthorityAnalyzer
from .base import Analyzer, ResultBuilder, find_homepage
from .content import ContentQualityAnalyzer
from .local import LocalAnalyzer
from .onpage import OnPageAnalyzer
from .performance import PerformanceAnalyzer
from .technical import TechnicalAnalyzer

# Fixed reporting order
ANALYZERS = (
    TechnicalAnalyzer,
    OnPageAnalyzer,
    ContentQualityAnalyzer,
    PerformanceAnalyzer,
    AuthorityAnalyzer,
    LocalAnalyzer,
)

__all__ = [
    "ANALYZERS",
    "Analyzer",
    "AuthorityAnalyzer",
    "ContentQualityAnalyzer",
    "LocalAnalyzer",
    "OnPageAnalyzer",
    "PerformanceAnalyzer",
    "ResultBuilder",
    "TechnicalAnalyzer",
    "find_homepage",
]
