"""CRMPilot NLU -- 确定性意图分类与知识库"""

from .intent_classifier import (
    ENTITY_PATTERNS,
    GENERAL_INTENT,
    IntentClassifier,
    IntentPattern,
)
from .knowledge_base import KnowledgeBase, Solution

__all__ = [
    "IntentClassifier",
    "IntentPattern",
    "ENTITY_PATTERNS",
    "GENERAL_INTENT",
    "KnowledgeBase",
    "Solution",
]
