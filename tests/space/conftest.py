from __future__ import annotations

import numpy as np
import pytest

from agentgrid import GridSingle


@pytest.fixture
def grid() -> GridSingle:
    space = GridSingle([3, 3], random=np.random.default_rng(42))
    space.place(1, (0, 0))
    space.place(2, (1, 1))
    return space


@pytest.fixture
def grid_torus() -> GridSingle:
    space = GridSingle([3, 3], periodic=True, random=np.random.default_rng(42))
    space.place(1, (0, 0))
    space.place(2, (1, 1))
    return space


@pytest.fixture
def grid_manhattan() -> GridSingle:
    return GridSingle([7, 7], metric="manhattan", random=np.random.default_rng(42))


@pytest.fixture
def grid_euclidean() -> GridSingle:
    return GridSingle([7, 7], metric="euclidean", random=np.random.default_rng(42))
