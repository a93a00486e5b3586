# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import warnings
from numbers import Real
import numpy as np
import hybridswarm.common.typing as tp
from hybridswarm.common import errors


class DelayedJob:
    """Future-like object which delays computation
    """

    def __init__(self, func: tp.Callable[..., tp.Any], *args: tp.Any, **kwargs: tp.Any) -> None:
        self.func = func
        self.args = args
        self.kwargs = kwargs
        self._result: tp.Optional[tp.Any] = None
        self._computed = False

    def done(self) -> bool:
        return True

    def result(self) -> tp.Any:
        if not self._computed:
            self._result = self.func(*self.args, **self.kwargs)
            self._computed = True
        return self._result


class SequentialExecutor:
    """Executor which run sequentially and locally
    (just calls the function when the result is requested)
    """

    def submit(self, fn: tp.Callable[..., tp.Any], *args: tp.Any, **kwargs: tp.Any) -> DelayedJob:
        return DelayedJob(fn, *args, **kwargs)


def as_random_state(random_state: tp.RandomStateLike = None) -> np.random.RandomState:
    """Builds a RandomState from None (random seed), an integer seed or an existing RandomState
    (which is returned as is, hence shared)
    """
    if isinstance(random_state, np.random.RandomState):
        return random_state
    if random_state is None:
        random_state = np.random.randint(2 ** 32, dtype=np.uint32)
    return np.random.RandomState(random_state)


def check_fitness(value: tp.Any) -> float:
    """Converts a fitness value to float.
    Non-numeric values raise a TypeError, non-finite values (NaN and +/-inf)
    are replaced by +inf so that they can never register as a best.
    """
    if isinstance(value, np.ndarray) and value.size == 1:
        value = value.item()
    if isinstance(value, bool) or not isinstance(value, (Real, float)):
        raise errors.HybridSwarmTypeError(
            f"Fitness functions must return a real scalar but returned: {value} (type: {type(value)})."
        )
    value = float(value)
    if not np.isfinite(value):
        warnings.warn(f"Fitness value {value} is treated as +inf.", errors.BadLossWarning)
        return float("inf")
    return value


def check_vector(vector: tp.ArrayLike, dimension: int, name: str = "vector") -> np.ndarray:
    """Converts to a 1d float array and checks its size, raising DimensionMismatchError otherwise"""
    array = np.asarray(vector, dtype=float)
    if array.shape != (dimension,):
        raise errors.DimensionMismatchError(
            f"Expected {name} of shape ({dimension},) but got shape {array.shape}."
        )
    return array


class BestState:
    """Best point and fitness recorded so far.
    It can only be improved through :code:`propose`, and ties never overwrite the record.

    Parameters
    ----------
    dimension: int
        dimension of the recorded point
    """

    def __init__(self, dimension: int) -> None:
        self._position = np.zeros(dimension)
        self._fitness = float("inf")

    @property
    def position(self) -> np.ndarray:
        view = self._position.view()
        view.flags.writeable = False
        return view

    @property
    def fitness(self) -> float:
        return self._fitness

    def propose(self, position: np.ndarray, fitness: float) -> bool:
        """Records the point if its fitness is strictly lower, and returns whether it did"""
        if fitness < self._fitness:
            self._position = np.array(position, dtype=float, copy=True)
            self._fitness = fitness
            return True
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(fitness={self._fitness}, position={self._position})"
