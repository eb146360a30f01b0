"""
agentgrid: discrete-time agent-based simulation on single-occupancy grids.

agentgrid runs spatial agent-based models such as Schelling's segregation
model: agents with a fixed, typed property schema live on an N-dimensional
grid holding at most one agent per cell, a scheduler decides their
activation order, a per-agent update function is applied sequentially every
step, and a data collector samples raw, derived or aggregated observations
into Polars DataFrames.

Key Features:
- Single-occupancy grids with periodic or bounded axes and chebyshev,
  euclidean or manhattan neighborhoods
- Reproducible runs: one seeded NumPy generator per model drives placement,
  movement and random scheduling
- Sequential activation with ByID, Fastest, Randomly, ByProperty or custom
  schedulers
- Step counts or stop predicates, with data collection into Polars tables
- Ensemble and parameter-scan runners over independent models

Main Components:
- Model: the simulation engine
- GridSingle: the spatial index
- AgentRegistry / AgentSchema / Agent: agent storage
- DataCollector: in-memory data collection

Usage:
    from agentgrid import Model

    model = Model({"mood": bool, "group": str}, dimensions=(20, 20), seed=42)
    model.add_agent((1, 1), mood=False, group="red")
    agent_df, model_df = model.run(5, agent_data=["mood", "group"])

License: MIT
"""

from __future__ import annotations

import os

# Enable runtime type checking if requested via environment variable
if os.getenv("AGENTGRID_RUNTIME_TYPECHECKING", "").lower() in ("1", "true", "yes"):
    try:
        from beartype.claw import beartype_this_package

        beartype_this_package()
    except ImportError:
        import warnings

        warnings.warn(
            "AGENTGRID_RUNTIME_TYPECHECKING is enabled but beartype is not installed.",
            ImportWarning,
            stacklevel=2,
        )

from agentgrid.concrete.agentregistry import Agent, AgentRegistry, AgentSchema
from agentgrid.concrete.datacollector import DataCollector
from agentgrid.concrete.ensemble import ensemble_run, paramscan
from agentgrid.concrete.model import Model
from agentgrid.concrete.scheduler import (
    ByID,
    ByProperty,
    CustomScheduler,
    Fastest,
    Randomly,
    get_scheduler,
)
from agentgrid.concrete.space import GridSingle
from agentgrid.exceptions import (
    AgentGridError,
    GridFullError,
    InvalidConfigError,
    NotFoundError,
    OccupiedCellError,
    OutOfBoundsError,
    SchemaError,
)

__all__ = [
    "Agent",
    "AgentRegistry",
    "AgentSchema",
    "ByID",
    "ByProperty",
    "CustomScheduler",
    "DataCollector",
    "Fastest",
    "GridSingle",
    "Model",
    "Randomly",
    "ensemble_run",
    "get_scheduler",
    "paramscan",
    "AgentGridError",
    "GridFullError",
    "InvalidConfigError",
    "NotFoundError",
    "OccupiedCellError",
    "OutOfBoundsError",
    "SchemaError",
]

__version__ = "0.1.0.dev0"
