"""Agents for business discovery and prospect scoring."""

from .base_agent import BaseAgent
from .scout_agent import ScoutAgent, MockScoutAgent
from .analyst_agent import AnalystAgent, MockAnalystAgent

__all__ = [
    "BaseAgent",
    "ScoutAgent",
    "MockScoutAgent",
    "AnalystAgent",
    "MockAnalystAgent",
]
