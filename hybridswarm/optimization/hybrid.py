# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import warnings
import numpy as np
import hybridswarm.common.typing as tp
from hybridswarm.common import errors
from . import utils
from .particle import Particle
from .swarm import Swarm
from .swarm import ConfSwarm
from .swarm import CallbackHolder


logger = logging.getLogger(__name__)


class HybridSwarm(CallbackHolder):
    """Memetic Particle Swarm Optimization: a standard PSO step, followed every :code:`period`
    steps by a few gradient descent steps on the elite particles.

    The refinement pass is strictly elitist and strictly improving:

    - all particles are evaluated again at their current position and the :code:`num_elites`
      best ones are selected (population order breaks ties),
    - each elite position is copied and updated :code:`descent_steps` times with
      :code:`w <- w - learning_rate * gradient(w)`,
    - the refined point replaces the particle position (with a zeroed velocity) only if its
      fitness is strictly lower than the fitness of the elite before refinement.

    Parameters
    ----------
    num_particles: int
        population size, fixed for the lifetime of the swarm
    dimension: int
        dimension of the search space
    omega: float
        inertia weight
    phip: float
        cognitive factor
    phig: float
        social factor
    max_velocity: float
        magnitude of the component-wise velocity clamp
    init_position_range: float
        half-width of the uniform position initialization
    init_velocity_range: float
        half-width of the uniform velocity initialization
    learning_rate: float
        gradient descent step size
    descent_steps: int
        number of gradient descent steps per refinement (0 disables refinement)
    num_elites: int
        number of particles refined per refinement pass (0 disables refinement)
    period: int
        refinement happens every :code:`period` steps (0 disables refinement)
    random_state: None, int or np.random.RandomState
        random state (or seed) for initialization and velocity updates

    Note
    ----
    - The standard PSO part is delegated to an underlying :code:`Swarm` instance (see :code:`swarm`
      attribute), which holds the population and the global best.
    - Elites are ranked with a fresh evaluation, which differs from the evaluation pass
      for stochastic fitness functions (eg: mini-batch based).
    - A gradient with non-finite components drops the refinement of the corresponding elite,
      with a BadGradientWarning.
    """

    _callback_names = ("step", "refine")

    # pylint: disable=too-many-arguments
    def __init__(
        self,
        num_particles: int,
        dimension: int,
        omega: float = 0.729,
        phip: float = 1.49445,
        phig: float = 1.49445,
        max_velocity: float = 0.5,
        init_position_range: float = 1.0,
        init_velocity_range: float = 0.1,
        learning_rate: float = 0.01,
        descent_steps: int = 3,
        num_elites: int = 5,
        period: int = 10,
        random_state: tp.RandomStateLike = None,
    ) -> None:
        super().__init__()
        for name, value in [("descent_steps", descent_steps), ("num_elites", num_elites), ("period", period)]:
            if isinstance(value, bool) or int(value) != value or value < 0:
                raise errors.HybridSwarmValueError(f"{name} must be a non-negative integer (got {value!r})")
        if not np.isfinite(learning_rate):
            raise errors.HybridSwarmValueError(f"learning_rate must be finite (got {learning_rate!r})")
        self.swarm = Swarm(
            num_particles,
            dimension,
            omega=omega,
            phip=phip,
            phig=phig,
            max_velocity=max_velocity,
            init_position_range=init_position_range,
            init_velocity_range=init_velocity_range,
            random_state=random_state,
        )
        self.learning_rate = float(learning_rate)
        self.descent_steps = int(descent_steps)
        self.num_elites = int(num_elites)
        self.period = int(period)
        self.name = self.__class__.__name__
        self._num_iterations = 0
        self._num_refinements = 0

    # read-only views, delegated to the underlying swarm

    @property
    def random_state(self) -> np.random.RandomState:
        return self.swarm.random_state

    @property
    def dimension(self) -> int:
        return self.swarm.dimension

    @property
    def num_particles(self) -> int:
        return self.swarm.num_particles

    @property
    def particles(self) -> tp.Tuple[Particle, ...]:
        return self.swarm.particles

    @property
    def num_steps(self) -> int:
        return self.swarm.num_steps

    @property
    def num_evaluations(self) -> int:
        return self.swarm.num_evaluations

    @property
    def global_best_position(self) -> np.ndarray:
        return self.swarm.global_best_position

    @property
    def global_best_fitness(self) -> float:
        return self.swarm.global_best_fitness

    @property
    def num_iterations(self) -> int:
        """Number of hybrid steps, which drives the refinement schedule"""
        return self._num_iterations

    @property
    def num_refinements(self) -> int:
        """Number of refinement passes actually performed"""
        return self._num_refinements

    def step(
        self,
        fitness_function: tp.FitnessFunction,
        gradient_function: tp.Optional[tp.GradientFunction] = None,
        executor: tp.Optional[tp.ExecutorLike] = None,
    ) -> None:
        """Performs one hybrid iteration: a standard PSO step, then the refinement pass if it is scheduled.

        Parameters
        ----------
        fitness_function: callable
            function mapping a position (np.ndarray of shape (dimension,)) to a fitness (lower is better)
        gradient_function: callable or None
            function mapping a position to the gradient of the fitness (same shape), possibly estimated.
            No refinement happens if it is not provided.
        executor: Executor
            optional executor for the evaluation pass of the PSO step (see :code:`Swarm.step`)
        """
        self.swarm.step(fitness_function, executor=executor)
        self._num_iterations += 1
        if self._is_refinement_scheduled(gradient_function):
            assert gradient_function is not None
            self._refine(fitness_function, gradient_function)
        self._call_callbacks("step")

    def _is_refinement_scheduled(self, gradient_function: tp.Optional[tp.GradientFunction]) -> bool:
        if gradient_function is None or not self.period:
            return False
        if not self.num_elites or not self.descent_steps:
            return False  # degenerate settings, no-op
        return not self._num_iterations % self.period

    def _refine(self, fitness_function: tp.FitnessFunction, gradient_function: tp.GradientFunction) -> None:
        fitnesses = np.array([self.swarm.evaluate(fitness_function, p.position) for p in self.particles])
        elites = np.argsort(fitnesses, kind="stable")[: min(self.num_elites, self.num_particles)]
        num_accepted = 0
        for index in elites:
            candidate = self._descend(self.particles[index].position, gradient_function)
            if candidate is None:
                continue
            new_fitness = self.swarm.evaluate(fitness_function, candidate)
            if new_fitness < fitnesses[index]:
                self.swarm.relocate(int(index), candidate, new_fitness)
                num_accepted += 1
        self._num_refinements += 1
        logger.debug(
            "%s refinement #%s at iteration %s: %s/%s elites improved, best fitness is %s",
            self.name,
            self._num_refinements,
            self._num_iterations,
            num_accepted,
            len(elites),
            self.global_best_fitness,
        )
        self._call_callbacks("refine", len(elites), num_accepted)

    def _descend(self, position: np.ndarray, gradient_function: tp.GradientFunction) -> tp.Optional[np.ndarray]:
        """Runs the gradient descent steps on a private copy of the position,
        returns None if a gradient was not finite.
        """
        w = np.array(position, dtype=float, copy=True)
        for _ in range(self.descent_steps):
            gradient = utils.check_vector(gradient_function(np.array(w, copy=True)), self.dimension, name="gradient")
            if not np.all(np.isfinite(gradient)):
                warnings.warn(
                    f"Dropping refinement because of non-finite gradient {gradient}.", errors.BadGradientWarning
                )
                return None
            w -= self.learning_rate * gradient
        return w

    def __repr__(self) -> str:
        return (
            f"Instance of {self.name}(num_particles={self.num_particles}, dimension={self.dimension}, "
            f"period={self.period}, num_elites={self.num_elites}, descent_steps={self.descent_steps})"
        )


class ConfHybridSwarm(ConfSwarm):
    """Creates memetic swarm optimizers (PSO + periodic gradient descent on elites)
    with a given configuration.

    Parameters
    ----------
    omega: float
        inertia weight
    phip: float
        cognitive factor
    phig: float
        social factor
    max_velocity: float
        magnitude of the component-wise velocity clamp
    init_position_range: float
        half-width of the uniform position initialization
    init_velocity_range: float
        half-width of the uniform velocity initialization
    learning_rate: float
        gradient descent step size
    descent_steps: int
        number of gradient descent steps per refinement
    num_elites: int
        number of particles refined per refinement pass
    period: int
        refinement happens every :code:`period` steps (0 disables refinement)
    """

    _OptimizerClass = HybridSwarm  # type: ignore

    # pylint: disable=unused-argument,too-many-arguments,super-init-not-called
    def __init__(
        self,
        omega: float = 0.729,
        phip: float = 1.49445,
        phig: float = 1.49445,
        max_velocity: float = 0.5,
        init_position_range: float = 1.0,
        init_velocity_range: float = 0.1,
        learning_rate: float = 0.01,
        descent_steps: int = 3,
        num_elites: int = 5,
        period: int = 10,
    ) -> None:
        self._config = dict(locals())
        self._config.pop("self", None)
        self._config.pop("__class__", None)
        self._set_default_name()

    def __call__(  # type: ignore
        self, num_particles: int, dimension: int, random_state: tp.RandomStateLike = None
    ) -> HybridSwarm:
        return super().__call__(num_particles, dimension, random_state=random_state)  # type: ignore


HybridPSO = ConfHybridSwarm().set_name("HybridPSO", register=True)
