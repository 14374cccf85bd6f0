from __future__ import annotations


class FlockError(Exception):
    pass


class ConfigurationError(FlockError, ValueError):
    """World parameters that would make the simulation undefined."""


class UnknownAgentError(FlockError, LookupError):
    def __init__(self, agent_id: int, population: int):
        super().__init__(f"No agent with id {agent_id} (population {population})")
        self.agent_id = agent_id
        self.population = population
