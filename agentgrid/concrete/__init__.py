"""
Concrete implementations of agentgrid components.

Modules:
    agentregistry: AgentSchema, Agent and AgentRegistry.
    datacollector: DataCollector producing Polars DataFrames.
    ensemble: ensemble_run and paramscan over independent models.
    model: Model, the simulation engine.
    scheduler: ByID, Fastest, Randomly, ByProperty, CustomScheduler.
    space: GridSingle, the NumPy-backed single-occupancy grid.

Usage:
    from agentgrid.concrete.model import Model
    from agentgrid.concrete.scheduler import Randomly

    model = Model({"wealth": int}, dimensions=(10, 10), scheduler=Randomly())
"""
