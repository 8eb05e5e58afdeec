"""CRMPilot Agents -- 线索、客服、供应链三个领域 Agent"""

from .base import Agent, BaseAgent
from .lead_agent import LeadAgent, next_stage, qualification_reasons
from .registry import AgentRegistry, AgentStatus
from .supply_agent import SupplyAgent, build_recommendations
from .support_agent import SupportAgent, analyze_sentiment, extract_key_topics

__all__ = [
    "Agent",
    "BaseAgent",
    "AgentRegistry",
    "AgentStatus",
    "LeadAgent",
    "SupportAgent",
    "SupplyAgent",
    "next_stage",
    "qualification_reasons",
    "analyze_sentiment",
    "extract_key_topics",
    "build_recommendations",
]
