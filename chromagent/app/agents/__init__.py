"""Agent profiles (system prompt + tool set)."""

from chromagent.app.agents.profiles import PROFILES, AgentProfile, get_profile

__all__ = ["PROFILES", "AgentProfile", "get_profile"]
