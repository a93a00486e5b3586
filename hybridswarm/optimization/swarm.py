# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pickle
import logging
from pathlib import Path
import numpy as np
import hybridswarm.common.typing as tp
from hybridswarm.common import errors
from hybridswarm.common import tools
from hybridswarm.common.decorators import Registry
from . import utils
from .particle import Particle


logger = logging.getLogger(__name__)
X = tp.TypeVar("X", bound="CallbackHolder")
OptCls = tp.Union["ConfSwarm", tp.Type["Swarm"]]
registry: Registry[OptCls] = Registry()


def load(cls: tp.Type[X], filepath: tp.PathLike) -> X:
    """Loads a pickle file and checks that it contains an optimizer of the expected class."""
    filepath = Path(filepath)
    with filepath.open("rb") as f:
        opt = pickle.load(f)
    if not isinstance(opt, cls):
        raise errors.HybridSwarmTypeError(f"You should only load {cls} with this method (found {type(opt)})")
    return opt


class CallbackHolder:
    """Callback registration and persistence shared by the swarm optimizers"""

    _callback_names: tp.Tuple[str, ...] = ("step",)

    def __init__(self) -> None:
        self._callbacks: tp.Dict[str, tp.List[tp.Callable[..., tp.Any]]] = {}

    def register_callback(self, name: str, callback: tp.Callable[..., tp.Any]) -> None:
        """Add a callback method called after each step (or other registered events).

        Parameters
        ----------
        name: str
            name of the event to register the callback for (eg: "step")
        callback: callable
            a callable taking the optimizer as first argument ("refine" callbacks also
            receive the number of refined and accepted elites)
        """
        if name not in self._callback_names:
            raise errors.HybridSwarmValueError(
                f"{self.__class__.__name__} only supports callbacks for {self._callback_names} (not {name})"
            )
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = {}

    def _call_callbacks(self, name: str, *args: tp.Any) -> None:
        for callback in self._callbacks.get(name, []):
            callback(self, *args)

    def dump(self, filepath: tp.PathLike) -> None:
        """Pickles the optimizer into a file."""
        filepath = Path(filepath)
        with filepath.open("wb") as f:
            pickle.dump(self, f)

    @classmethod
    def load(cls: tp.Type[X], filepath: tp.PathLike) -> X:
        """Loads a pickle and checks that the class is correct."""
        return load(cls, filepath)


class Swarm(CallbackHolder):
    """Standard global-best Particle Swarm Optimization, driven step by step.

    Each :code:`step` performs two strictly ordered passes over the population:

    - evaluation: each particle is evaluated at its current position, and the personal
      and global bests are updated on strict improvement (population order gives precedence on ties).
    - movement: each velocity is updated with the inertia, cognitive and social terms,
      clamped component-wise to :code:`[-max_velocity, max_velocity]`, and added to the position.

    Parameters
    ----------
    num_particles: int
        population size, fixed for the lifetime of the swarm
    dimension: int
        dimension of the search space
    omega: float
        inertia weight
    phip: float
        cognitive factor (attraction to the personal best)
    phig: float
        social factor (attraction to the global best)
    max_velocity: float
        magnitude of the component-wise velocity clamp
    init_position_range: float
        initial positions are drawn uniformly in [-init_position_range, init_position_range]
    init_velocity_range: float
        initial velocities are drawn uniformly in [-init_velocity_range, init_velocity_range]
    random_state: None, int or np.random.RandomState
        random state (or seed) for initialization and velocity updates

    Note
    ----
    - Positions are not bounded, the search space is the whole real space.
    - Non-finite fitness values are treated as +inf (with a BadLossWarning),
      so they never register as a best.
    """

    # pylint: disable=too-many-instance-attributes,too-many-arguments
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
        random_state: tp.RandomStateLike = None,
    ) -> None:
        super().__init__()
        num_particles = tools.as_positive_int(num_particles, "num_particles")
        dimension = tools.as_positive_int(dimension, "dimension")
        for name, value in [
            ("max_velocity", max_velocity),
            ("init_position_range", init_position_range),
            ("init_velocity_range", init_velocity_range),
        ]:
            if not value >= 0:
                raise errors.HybridSwarmValueError(f"{name} must be non-negative (got {value!r})")
        self.omega = float(omega)
        self.phip = float(phip)
        self.phig = float(phig)
        self.max_velocity = float(max_velocity)
        self.name = self.__class__.__name__  # printed name in repr
        self._rng = utils.as_random_state(random_state)
        self._particles = tuple(
            Particle(dimension, init_position_range, init_velocity_range, random_state=self._rng)
            for _ in range(num_particles)
        )
        self._best = utils.BestState(dimension)
        self._num_steps = 0
        self._num_evaluations = 0

    @property
    def random_state(self) -> np.random.RandomState:
        """np.random.RandomState: random state the velocity updates pull from"""
        return self._rng

    @property
    def dimension(self) -> int:
        return self._best.position.size

    @property
    def num_particles(self) -> int:
        return len(self._particles)

    @property
    def particles(self) -> tp.Tuple[Particle, ...]:
        return self._particles

    @property
    def num_steps(self) -> int:
        """Number of completed steps"""
        return self._num_steps

    @property
    def num_evaluations(self) -> int:
        """Number of fitness evaluations performed by the optimizer"""
        return self._num_evaluations

    @property
    def global_best_position(self) -> np.ndarray:
        """Best position found so far across all particles (read-only)"""
        return self._best.position

    @property
    def global_best_fitness(self) -> float:
        """Fitness of the best position found so far (+inf before the first step)"""
        return self._best.fitness

    def evaluate(self, fitness_function: tp.FitnessFunction, position: np.ndarray) -> float:
        """Evaluates the fitness function on a copy of the position and checks its output"""
        self._num_evaluations += 1
        return utils.check_fitness(fitness_function(np.array(position, copy=True)))

    def step(self, fitness_function: tp.FitnessFunction, executor: tp.Optional[tp.ExecutorLike] = None) -> None:
        """Performs one PSO iteration: evaluation pass then movement pass.

        Parameters
        ----------
        fitness_function: callable
            function mapping a position (np.ndarray of shape (dimension,)) to a fitness (lower is better)
        executor: Executor
            optional object with a :code:`submit(callable, *args)` method returning a Future-like object
            (Eg: :code:`concurrent.futures.ThreadPoolExecutor`) used to evaluate the particles concurrently.
            Results are still processed in population order, in the calling thread.
        """
        self._evaluation_pass(fitness_function, executor)
        self._movement_pass()
        self._num_steps += 1
        self._call_callbacks("step")

    def _evaluation_pass(self, fitness_function: tp.FitnessFunction, executor: tp.Optional[tp.ExecutorLike]) -> None:
        if executor is None:
            executor = utils.SequentialExecutor()  # evaluates lazily, in order
        jobs = [executor.submit(fitness_function, np.array(p.position, copy=True)) for p in self._particles]
        for particle, job in zip(self._particles, jobs):
            self._num_evaluations += 1
            fitness = utils.check_fitness(job.result())
            particle.update_personal_best(fitness)
            self._best.propose(particle.position, fitness)

    def _movement_pass(self) -> None:
        for particle in self._particles:
            # one (r1, r2) couple per dimension
            draws = self._rng.uniform(0.0, 1.0, size=(self.dimension, 2))
            speed = (
                self.omega * particle.velocity
                + self.phip * draws[:, 0] * (particle.best_position - particle.position)
                + self.phig * draws[:, 1] * (self._best.position - particle.position)
            )
            speed = np.clip(speed, -self.max_velocity, self.max_velocity)
            particle.velocity = speed
            particle.position = particle.position + speed

    def relocate(self, index: int, position: tp.ArrayLike, fitness: float) -> None:
        """Moves a particle to an externally refined position with known fitness.
        Its velocity is reset to zero, then personal and global bests are updated on strict improvement.
        """
        position = utils.check_vector(position, self.dimension, name="position")
        fitness = utils.check_fitness(fitness)
        particle = self._particles[index]
        particle.position = np.array(position, copy=True)
        particle.velocity = np.zeros(self.dimension)
        particle.update_personal_best(fitness)
        if self._best.propose(position, fitness):
            logger.debug("%s global best improved to %s through relocation of particle #%s", self.name, fitness, index)

    def __repr__(self) -> str:
        return f"Instance of {self.name}(num_particles={self.num_particles}, dimension={self.dimension})"


class ConfSwarm:
    """Creates swarm optimizers with a given configuration.

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

    Note
    ----
    This provides a default repr listing non-default values, which can be bypassed through set_name
    """

    _OptimizerClass: tp.Type[Swarm] = Swarm

    # pylint: disable=unused-argument,too-many-arguments
    def __init__(
        self,
        omega: float = 0.729,
        phip: float = 1.49445,
        phig: float = 1.49445,
        max_velocity: float = 0.5,
        init_position_range: float = 1.0,
        init_velocity_range: float = 0.1,
    ) -> None:
        self._config = dict(locals())
        self._config.pop("self", None)
        self._config.pop("__class__", None)
        self._set_default_name()

    def _set_default_name(self) -> None:
        diff = tools.different_from_defaults(instance=self, instance_dict=self._config, check_mismatches=True)
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(diff.items()))
        self.name = f"{self.__class__.__name__}({params})"

    def config(self) -> tp.Dict[str, tp.Any]:
        return dict(self._config)

    def __call__(self, num_particles: int, dimension: int, random_state: tp.RandomStateLike = None) -> Swarm:
        """Creates an optimizer

        Parameters
        ----------
        num_particles: int
            population size
        dimension: int
            dimension of the search space
        random_state: None, int or np.random.RandomState
            random state (or seed) of the optimizer
        """
        run = self._OptimizerClass(num_particles, dimension, random_state=random_state, **self._config)
        run.name = self.name
        return run

    def __repr__(self) -> str:
        return self.name

    def set_name(self, name: str, register: bool = False) -> "ConfSwarm":
        """Set a new representation for the instance"""
        self.name = name
        if register:
            registry.register_name(name, self)
        return self

    def __eq__(self, other: tp.Any) -> tp.Any:
        if self.__class__ == other.__class__:
            if self._config == other._config:
                return True
        return False


PSO = ConfSwarm().set_name("PSO", register=True)
