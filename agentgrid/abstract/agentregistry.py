"""
Abstract base classes for agent storage in agentgrid.

This module defines the interface of the agent registry: the component that
owns agent identities and their property records. The registry knows each
agent's position but never touches the space; the model pairs every
registry mutation with the matching space mutation.

Classes:
    AbstractAgentRegistry(ABC):
        Interface for creating, reading, updating and destroying agent
        records, and for enumerating live ids in insertion order.

Usage:
    These classes should not be instantiated directly. Instead, subclass
    them to create concrete registries:

    from agentgrid.abstract.agentregistry import AbstractAgentRegistry

    class MyRegistry(AbstractAgentRegistry):
        def create(self, pos, properties):
            # Store a new record and return its id
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, KeysView, Mapping
from typing import TYPE_CHECKING, Any

import polars as pl

from agentgrid.types_ import Position

if TYPE_CHECKING:
    from agentgrid.concrete.agentregistry import Agent


class AbstractAgentRegistry(ABC):
    """Interface for the owner of agent records."""

    @abstractmethod
    def create(self, pos: Position, properties: Mapping[str, Any]) -> int:
        """Create a new agent record.

        Parameters
        ----------
        pos : Position
            The initial position of the agent. The caller is responsible for
            placing the agent in the space.
        properties : Mapping[str, Any]
            A value for every property of the schema.

        Returns
        -------
        int
            The id of the new agent.
        """
        ...

    @abstractmethod
    def get(self, agent_id: int) -> Agent:
        """Return the record of an agent.

        Raises
        ------
        NotFoundError
            If the agent does not exist.
        """
        ...

    @abstractmethod
    def destroy(self, agent_id: int) -> Agent:
        """Remove the record of an agent and return it.

        Raises
        ------
        NotFoundError
            If the agent does not exist.
        """
        ...

    @abstractmethod
    def all_ids(self) -> KeysView[int]:
        """Return a lazy, restartable view over live ids in insertion order."""
        ...

    def get_property(self, agent_id: int, name: str) -> Any:
        """Return the value of a property of an agent.

        Parameters
        ----------
        agent_id : int
            The id of the agent.
        name : str
            The property name.

        Returns
        -------
        Any
        """
        return getattr(self.get(agent_id), name)

    def set_property(self, agent_id: int, name: str, value: Any) -> None:
        """Set the value of a property of an agent.

        Parameters
        ----------
        agent_id : int
            The id of the agent.
        name : str
            The property name.
        value : Any
            The new value, validated against the schema.
        """
        setattr(self.get(agent_id), name, value)

    @property
    @abstractmethod
    def df(self) -> pl.DataFrame:
        """A DataFrame snapshot of every live agent."""
        ...

    @abstractmethod
    def __iter__(self) -> Iterator[Agent]: ...

    @abstractmethod
    def __len__(self) -> int: ...

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self.all_ids()

    def __getitem__(self, agent_id: int) -> Agent:
        return self.get(agent_id)
