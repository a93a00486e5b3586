# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import hybridswarm.common.typing as tp


class Particle:
    """One candidate solution of a swarm: position, velocity and personal best.

    Parameters
    ----------
    dimension: int
        dimension of the search space
    init_position_range: float
        positions are initialized uniformly in [-init_position_range, init_position_range]
    init_velocity_range: float
        velocities are initialized uniformly in [-init_velocity_range, init_velocity_range]
    random_state: np.random.RandomState
        random state the initialization pulls from

    Note
    ----
    The personal best is seeded with the initial position, with an infinite fitness,
    so that the first finite evaluation always registers.
    """

    def __init__(
        self,
        dimension: int,
        init_position_range: float = 1.0,
        init_velocity_range: float = 0.1,
        random_state: tp.Optional[np.random.RandomState] = None,
    ) -> None:
        rng = np.random.RandomState() if random_state is None else random_state
        self.position: np.ndarray = rng.uniform(-init_position_range, init_position_range, size=dimension)
        self.velocity: np.ndarray = rng.uniform(-init_velocity_range, init_velocity_range, size=dimension)
        self._best_position = np.array(self.position, copy=True)
        self._best_fitness = float("inf")

    @property
    def dimension(self) -> int:
        return self.position.size

    @property
    def best_position(self) -> np.ndarray:
        """Best position this particle ever visited (read-only view)"""
        view = self._best_position.view()
        view.flags.writeable = False
        return view

    @property
    def best_fitness(self) -> float:
        return self._best_fitness

    def update_personal_best(self, fitness: float) -> bool:
        """Records the current position as personal best if the provided fitness
        (the one of the current position) is strictly better.
        Returns whether the personal best was updated.
        """
        if fitness < self._best_fitness:
            self._best_position = np.array(self.position, copy=True)
            self._best_fitness = fitness
            return True
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dimension={self.dimension}, best_fitness={self._best_fitness})"
