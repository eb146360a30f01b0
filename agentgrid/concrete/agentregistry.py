"""
Concrete agent records and registry for agentgrid.

This module provides the storage of agents: a fixed, typed property schema
(AgentSchema), the per-agent record (Agent) and the registry owning every
live record (AgentRegistry). Records are plain Python objects so that
per-agent update functions read and write them cheaply; the registry exposes
a Polars DataFrame snapshot for tabular consumers such as the DataCollector.

Classes:
    AgentSchema:
        The named, typed property fields shared by every agent of a model,
        with the matching Polars dtypes.
    Agent:
        A single agent: immutable id, position maintained by the model, and
        schema-validated properties accessed as attributes.
    AgentRegistry(AbstractAgentRegistry):
        Owner of agent identities and records, enumerated in insertion order.

Usage:
    from agentgrid.concrete.agentregistry import AgentRegistry

    registry = AgentRegistry({"mood": bool, "group": str})
    agent_id = registry.create((0, 0), {"mood": False, "group": "red"})
    registry[agent_id].mood = True
    registry.df  # unique_id, dim_0, dim_1, mood, group
"""

from __future__ import annotations

from collections.abc import Iterator, KeysView, Mapping, ValuesView
from typing import Any

import polars as pl

from agentgrid.abstract.agentregistry import AbstractAgentRegistry
from agentgrid.exceptions import InvalidConfigError, NotFoundError, SchemaError
from agentgrid.types_ import Position, PropertyType, SchemaLike
from agentgrid.utils import copydoc

RESERVED_NAMES = frozenset({"unique_id", "id", "pos", "time"})

_PYTHON_TO_POLARS: dict[type, pl.DataType] = {
    bool: pl.Boolean(),
    int: pl.Int64(),
    float: pl.Float64(),
    str: pl.String(),
}

_POLARS_TO_PYTHON: dict[pl.DataType, type] = {
    pl.Boolean(): bool,
    pl.Int8(): int,
    pl.Int16(): int,
    pl.Int32(): int,
    pl.Int64(): int,
    pl.UInt8(): int,
    pl.UInt16(): int,
    pl.UInt32(): int,
    pl.UInt64(): int,
    pl.Float32(): float,
    pl.Float64(): float,
    pl.String(): str,
}


class AgentSchema:
    """The named, typed properties every agent of a model carries.

    Python types map to Polars dtypes (``bool`` -> Boolean, ``int`` -> Int64,
    ``float`` -> Float64, ``str`` -> String) and Polars dtypes map back to
    Python types for validation. Any other Python type is stored as a Polars
    Object column and is checked with ``isinstance`` only.
    """

    def __init__(self, fields: SchemaLike) -> None:
        """Create a new AgentSchema.

        Parameters
        ----------
        fields : Mapping[str, type | pl.DataType]
            The property names and their types.

        Raises
        ------
        InvalidConfigError
            If a name is reserved or a type is not understood.
        """
        self._types: dict[str, type] = {}
        self._dtypes: dict[str, pl.DataType] = {}
        for name, kind in fields.items():
            if not isinstance(name, str) or not name.isidentifier():
                raise InvalidConfigError(f"Invalid property name: {name!r}")
            if name in RESERVED_NAMES:
                raise InvalidConfigError(f"Property name {name!r} is reserved")
            self._types[name], self._dtypes[name] = self._resolve(kind)

    @staticmethod
    def _resolve(kind: PropertyType) -> tuple[type, pl.DataType]:
        if isinstance(kind, type) and issubclass(kind, pl.DataType):
            kind = kind()
        if isinstance(kind, pl.DataType):
            return _POLARS_TO_PYTHON.get(kind, object), kind
        if isinstance(kind, type):
            return kind, _PYTHON_TO_POLARS.get(kind, pl.Object())
        raise InvalidConfigError(f"Unsupported property type: {kind!r}")

    def validate(self, name: str, value: Any) -> None:
        """Check that value is acceptable for the property name.

        Raises
        ------
        SchemaError
            If name is not part of the schema or value has the wrong type.
        """
        try:
            expected = self._types[name]
        except KeyError:
            raise SchemaError(f"Unknown agent property: {name!r}") from None
        if expected is float and isinstance(value, int) and not isinstance(value, bool):
            return
        if expected is int and isinstance(value, bool):
            raise SchemaError(f"Property {name!r} expects int, got bool")
        if not isinstance(value, expected):
            raise SchemaError(
                f"Property {name!r} expects {expected.__name__}, got {type(value).__name__}"
            )

    def validate_all(self, properties: Mapping[str, Any]) -> dict[str, Any]:
        """Validate a complete set of properties and return them in schema order.

        Raises
        ------
        SchemaError
            If a property is missing, unknown or has the wrong type.
        """
        missing = [name for name in self._types if name not in properties]
        if missing:
            raise SchemaError(f"Missing agent properties: {missing}")
        for name, value in properties.items():
            self.validate(name, value)
        return {name: properties[name] for name in self._types}

    @property
    def names(self) -> list[str]:
        return list(self._types)

    @property
    def dtypes(self) -> dict[str, pl.DataType]:
        return dict(self._dtypes)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}: {v}" for k, v in self._dtypes.items())
        return f"AgentSchema({fields})"


class Agent:
    """A single agent record.

    Schema properties are read and written as attributes; writes are
    validated against the schema. ``unique_id`` and ``pos`` are read-only:
    positions change only through the model so that the space stays in sync.
    """

    __slots__ = ("_unique_id", "_pos", "_values", "_schema")

    def __init__(
        self,
        unique_id: int,
        pos: Position,
        values: dict[str, Any],
        schema: AgentSchema,
    ) -> None:
        object.__setattr__(self, "_unique_id", unique_id)
        object.__setattr__(self, "_pos", pos)
        object.__setattr__(self, "_values", values)
        object.__setattr__(self, "_schema", schema)

    @property
    def unique_id(self) -> int:
        return self._unique_id

    @property
    def pos(self) -> Position:
        return self._pos

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(
                f"{self.__class__.__name__} has no property {name!r}"
            ) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name in ("unique_id", "pos") or name.startswith("_"):
            raise AttributeError(
                f"Cannot set {name!r}; move agents through the model instead"
            )
        self._schema.validate(name, value)
        self._values[name] = value

    def __getstate__(self) -> dict[str, Any]:
        return {slot: object.__getattribute__(self, slot) for slot in self.__slots__}

    def __setstate__(self, state: dict[str, Any]) -> None:
        for slot, value in state.items():
            object.__setattr__(self, slot, value)

    def as_dict(self) -> dict[str, Any]:
        """Return the id, position and properties as a plain dictionary."""
        return {"unique_id": self._unique_id, "pos": self._pos, **self._values}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Agent):
            return NotImplemented
        return self._unique_id == other._unique_id

    def __hash__(self) -> int:
        return hash(self._unique_id)

    def __repr__(self) -> str:
        props = ", ".join(f"{k}={v!r}" for k, v in self._values.items())
        return f"Agent(unique_id={self._unique_id}, pos={self._pos}, {props})"


@copydoc(AbstractAgentRegistry)
class AgentRegistry(AbstractAgentRegistry):
    """Dictionary-backed implementation of AbstractAgentRegistry.

    Ids start at 1 and are never reused, even after agents are destroyed.
    """

    _agents: dict[int, Agent]
    _next_id: int

    def __init__(self, schema: AgentSchema | SchemaLike) -> None:
        """Create a new AgentRegistry.

        Parameters
        ----------
        schema : AgentSchema | Mapping[str, type | pl.DataType]
            The property schema of the agents.
        """
        self._schema = schema if isinstance(schema, AgentSchema) else AgentSchema(schema)
        self._agents = {}
        self._next_id = 1

    def create(self, pos: Position, properties: Mapping[str, Any]) -> int:
        values = self._schema.validate_all(properties)
        agent_id = self._next_id
        self._agents[agent_id] = Agent(agent_id, tuple(pos), values, self._schema)
        self._next_id += 1
        return agent_id

    def get(self, agent_id: int) -> Agent:
        try:
            return self._agents[agent_id]
        except KeyError:
            raise NotFoundError(agent_id, "the registry") from None

    def get_property(self, agent_id: int, name: str) -> Any:
        agent = self.get(agent_id)
        if name == "pos":
            return agent.pos
        if name == "unique_id":
            return agent.unique_id
        if name not in self._schema:
            raise SchemaError(f"Unknown agent property: {name!r}")
        return agent._values[name]

    def set_property(self, agent_id: int, name: str, value: Any) -> None:
        setattr(self.get(agent_id), name, value)

    def destroy(self, agent_id: int) -> Agent:
        try:
            return self._agents.pop(agent_id)
        except KeyError:
            raise NotFoundError(agent_id, "the registry") from None

    def all_ids(self) -> KeysView[int]:
        return self._agents.keys()

    def all_agents(self) -> ValuesView[Agent]:
        """Return a lazy, restartable view over live records in insertion order."""
        return self._agents.values()

    def _set_position(self, agent_id: int, pos: Position) -> None:
        """Update the recorded position of an agent (model use only)."""
        object.__setattr__(self.get(agent_id), "_pos", pos)

    @property
    def df(self) -> pl.DataFrame:
        agents = list(self._agents.values())
        ndim = len(agents[0].pos) if agents else 0
        data: dict[str, pl.Series] = {
            "unique_id": pl.Series(
                "unique_id", [a.unique_id for a in agents], dtype=pl.Int64
            )
        }
        for i in range(ndim):
            data[f"dim_{i}"] = pl.Series(
                f"dim_{i}", [a.pos[i] for a in agents], dtype=pl.Int64
            )
        for name, dtype in self._schema.dtypes.items():
            data[name] = pl.Series(
                name, [a._values[name] for a in agents], dtype=dtype
            )
        return pl.DataFrame(data)

    @property
    def schema(self) -> AgentSchema:
        return self._schema

    @property
    def next_id(self) -> int:
        """The id the next created agent will receive."""
        return self._next_id

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._agents.values())

    def __len__(self) -> int:
        return len(self._agents)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}\n{str(self.df)}"
