"""
Abstract base classes for data collection components in agentgrid.

This module defines the core abstraction for data collection in agentgrid.
It provides a standardized interface for sampling model- and agent-level
data while a simulation runs, supporting conditional collection through a
trigger function.

Classes:
    AbstractDataCollector:
        An abstract base class defining the structure and core logic for all
        data collector implementations. It stores the reporters, decides
        whether a sample should be taken, and keeps the collected frames in
        memory until they are read or reset.

Usage:
    These classes should not be instantiated directly. Instead, they should be
    subclassed to create concrete DataCollector:

    from agentgrid.abstract.datacollector import AbstractDataCollector

    class DataCollector(AbstractDataCollector):
        def _collect(self):
            # Sample the model and agents into Polars frames
            ...

        @property
        def data(self):
            # Return the frames collected so far
            ...

For more detailed information on each class, refer to their individual docstrings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import polars as pl

from agentgrid.types_ import AgentReporters, ModelReporters

if TYPE_CHECKING:
    from agentgrid.concrete.model import Model


class AbstractDataCollector(ABC):
    """
    Abstract Base Class for agentgrid DataCollector.

    This class defines methods for collecting data from both model and agents.
    Sub classes must implement the sampling logic and the data accessor.
    """

    _model: Model
    _model_reporters: ModelReporters
    _agent_reporters: AgentReporters
    _trigger: Callable[[Any], bool] | None
    _frames: list[tuple[str, int, pl.LazyFrame]]

    def __init__(
        self,
        model: Model,
        agent_reporters: AgentReporters | None,
        model_reporters: ModelReporters | None,
        trigger: Callable[[Any], bool] | None,
    ):
        """
        Initialize a Datacollector.

        Parameters
        ----------
        model : Model
            The model object from which data is collected.
        agent_reporters : AgentReporters | None
            Properties, functions or aggregations to collect at the agent level.
        model_reporters : ModelReporters | None
            Properties or functions to collect at the model level.
        trigger : Callable[[Any], bool] | None
            A function(model) -> bool that determines whether to collect data
            in :meth:`conditional_collect`.
        """
        self._model = model
        self._agent_reporters = agent_reporters or {}
        self._model_reporters = model_reporters or {}
        self._trigger = trigger
        self._frames = []

    def collect(self) -> None:
        """
        Trigger Data collection.

        This method calls _collect() to perform actual data collection.

        Example
        -------
        >>> datacollector.collect()
        """
        self._collect()

    def conditional_collect(self) -> None:
        """
        Trigger data collection if condition is met.

        This method calls _collect() only if the trigger returns True.

        Example
        -------
        >>> datacollector.conditional_collect()
        """
        if self._should_collect():
            self._collect()

    def _should_collect(self) -> bool:
        """
        Evaluate whether data should be collected at current step.

        Returns
        -------
        bool
            True if the configured trigger condition is met, False otherwise.
        """
        return self._trigger is not None and bool(self._trigger(self._model))

    @abstractmethod
    def _collect(self) -> None:
        """
        Perform the actual data collection logic.

        This method must be implemented by subclasses.
        """
        pass

    @property
    @abstractmethod
    def data(self) -> dict[str, pl.DataFrame]:
        """
        Returns collected data currently in memory as dataframes.

        Example:
        -------
        >>> df = datacollector.data["agent"]
        """
        pass

    def reset(self) -> None:
        """
        Clear all collected data currently stored in memory.

        Use this to free memory or start a fresh collection.
        """
        self._frames = []

    @property
    def has_trigger(self) -> bool:
        """Whether a trigger function was configured."""
        return self._trigger is not None

    @property
    def seed(self) -> int:
        """
        Function to get the model seed.

        Example:
        --------
        >>> seed = datacollector.seed
        """
        return self._model.seed
