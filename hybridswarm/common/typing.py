# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Definitions of some convenient types.
"""
# pylint: disable=unused-import
# structures
from typing import Any as Any
from typing import TypeVar as TypeVar
from typing import Optional as Optional
from typing import Union as Union

# containers
from typing import Dict as Dict
from typing import Tuple as Tuple
from typing import Type as Type
from typing import List as List
from typing import Sequence as Sequence
from typing import NamedTuple as NamedTuple

# iterables
from typing import Iterator as Iterator
from typing import Iterable as Iterable

# others
from typing import Callable as Callable
from pathlib import Path as Path
from typing_extensions import Protocol

#
import numpy as _np


ArrayLike = Union[Tuple[float, ...], List[float], _np.ndarray]
PathLike = Union[str, Path]
FitnessFunction = Callable[[_np.ndarray], float]
GradientFunction = Callable[[_np.ndarray], ArrayLike]
RandomStateLike = Optional[Union[int, _np.random.RandomState]]


# %% Protocol definitions for executor typing

X = TypeVar("X", covariant=True)


class JobLike(Protocol[X]):
    # pylint: disable=pointless-statement

    def done(self) -> bool:
        ...

    def result(self) -> X:
        ...


class ExecutorLike(Protocol):
    # pylint: disable=pointless-statement, unused-argument

    def submit(self, fn: Callable[..., X], *args: Any, **kwargs: Any) -> JobLike[X]:
        ...


# %% Read-only view shared by swarm optimizers


class SwarmLike(Protocol):
    # pylint: disable=pointless-statement

    @property
    def dimension(self) -> int:
        ...

    @property
    def num_steps(self) -> int:
        ...

    @property
    def global_best_position(self) -> _np.ndarray:
        ...

    @property
    def global_best_fitness(self) -> float:
        ...
