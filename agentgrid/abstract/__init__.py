"""
agentgrid abstract components.

This package contains the abstract base classes that define the interfaces
of agentgrid. Concrete implementations live in :mod:`agentgrid.concrete`.

Modules:
    agentregistry: AbstractAgentRegistry, the owner of agent records.
    datacollector: AbstractDataCollector, the data collection interface.
    scheduler: AbstractScheduler, the activation-order interface.
    space: AbstractGrid, the single-occupancy spatial index interface.
"""
