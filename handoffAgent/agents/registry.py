"""Agent registry: name lookup and handoff graph validation for one runner."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from handoffAgent.agents.agent import Agent
from handoffAgent.handoff.handoff import ConfiguredHandoff
from handoffAgent.utils.error_handler import HandoffConfigurationError

LOGGER = logging.getLogger(__name__)


class AgentRegistry:
    """Agents known to a runner, keyed by name.

    ``register`` walks an agent's handoff targets recursively, so registering
    the entry agent of a tree registers the whole tree. Targets given by name
    are resolved lazily, which allows cycles (A -> B -> A).
    """

    def __init__(self, agents: Optional[Iterable[Agent]] = None):
        self._agents: Dict[str, Agent] = {}
        for agent in agents or ():
            self.register(agent)

    # ========== Registration Methods ==========

    def register(self, agent: Agent) -> Agent:
        """Register ``agent`` and every Agent reachable through its handoffs.

        Raises:
            HandoffConfigurationError: A different agent already uses the name
        """
        pending = [agent]
        while pending:
            current = pending.pop()
            existing = self._agents.get(current.name)
            if existing is current:
                continue
            if existing is not None:
                raise HandoffConfigurationError(
                    f'Two different agents are named "{current.name}"',
                    agent_name=current.name,
                )
            self._agents[current.name] = current
            LOGGER.debug(f"Registered agent: {current.name}")
            for target in current.get_configured_handoffs():
                if isinstance(target.agent, Agent):
                    pending.append(target.agent)
        return agent

    # ========== Query Methods ==========

    def __contains__(self, name: str) -> bool:
        return name in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def get(self, name: str) -> Optional[Agent]:
        return self._agents.get(name)

    def require(self, name: str) -> Agent:
        agent = self._agents.get(name)
        if agent is None:
            raise HandoffConfigurationError(f"Unknown agent: {name}", target=name)
        return agent

    def list_agents(self) -> List[Agent]:
        return list(self._agents.values())

    def resolve_handoffs(self, agent: Agent) -> List[Tuple[ConfiguredHandoff, Agent]]:
        """Pair each declared handoff of ``agent`` with its target Agent.

        Raises:
            HandoffConfigurationError: A target name is not registered
        """
        resolved = []
        for target in agent.get_configured_handoffs():
            if isinstance(target.agent, Agent):
                resolved.append((target, target.agent))
                continue
            target_agent = self._agents.get(target.agent)
            if target_agent is None:
                raise HandoffConfigurationError(
                    f'Agent "{agent.name}" declares handoff to unknown agent "{target.agent}"',
                    agent_name=agent.name,
                    target=target.agent,
                )
            resolved.append((target, target_agent))
        return resolved

    def validate(self, entry: Optional[Agent] = None) -> None:
        """Check every handoff target resolves, starting from ``entry`` or all agents.

        Runs before any turn so misconfigured graphs fail fast.
        """
        if entry is None:
            agents = self.list_agents()
        else:
            agents, seen = [], set()
            pending = [entry]
            while pending:
                current = pending.pop()
                if current.name in seen:
                    continue
                seen.add(current.name)
                agents.append(current)
                pending.extend(target for _, target in self.resolve_handoffs(current))

        for agent in agents:
            self.resolve_handoffs(agent)

    def get_catalog_text(self, names: Optional[Iterable[str]] = None) -> str:
        """Markdown list of agents for triage prompts."""
        agents = [self.require(name) for name in names] if names is not None else self.list_agents()
        lines = []
        for agent in agents:
            lines.append(f"- **{agent.name}**: {agent.description}" if agent.description else f"- **{agent.name}**")
        return "\n".join(lines)


__all__ = ["AgentRegistry"]
