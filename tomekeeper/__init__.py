"""
Tomekeeper: turn free-form game rules text into linked tabletop library documents.

Text is extracted into structured JSON by a local language model, repaired,
and compiled into documents with level-gated grants.
"""

__version__ = "0.1.0"
__author__ = "Tomekeeper Project"

# Import main components
from .config import ImportSettings, config
from .database import DocumentLibrary
from .models import DomainKind, ImportResult
from .agents import AgentRunner
from .pipeline import ImportPipeline
from .strategies import strategy_registry

__all__ = [
    "ImportSettings",
    "config",
    "DocumentLibrary",
    "DomainKind",
    "ImportResult",
    "AgentRunner",
    "ImportPipeline",
    "strategy_registry",
]
