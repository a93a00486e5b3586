# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import hybridswarm.common.typing as tp
from hybridswarm.common import errors
from hybridswarm.common.decorators import Registry


registry: Registry[tp.Callable[[np.ndarray], float]] = Registry()


@registry.register
def sphere(x: np.ndarray) -> float:
    """The most classical continuous optimization testbed.

    If you do not solve that one then you have a bug."""
    x = np.asarray(x, dtype=float)
    assert x.ndim == 1
    return float(x.dot(x))


@registry.register
def rastrigin(x: np.ndarray) -> float:
    """Classical multimodal function."""
    x = np.asarray(x, dtype=float)
    cosi = float(np.sum(np.cos(2 * np.pi * x)))
    return float(10 * (len(x) - cosi) + sphere(x))


@registry.register
def rosenbrock(x: np.ndarray) -> float:
    x = np.asarray(x, dtype=float)
    x_m_1 = x[:-1] - 1
    x_diff = x[:-1] ** 2 - x[1:]
    return float(100 * x_diff.dot(x_diff) + x_m_1.dot(x_m_1))


@registry.register
def schaffer_f6(x: np.ndarray) -> float:
    """Schaffer's F6 function, 2-dimensional only, with many rings of local minima around the origin."""
    x = np.asarray(x, dtype=float)
    if x.shape != (2,):
        raise errors.DimensionMismatchError(f"Schaffer F6 is 2-dimensional (got shape {x.shape})")
    r2 = sphere(x)
    num = np.sin(np.sqrt(r2)) ** 2 - 0.5
    den = (1.0 + 0.001 * r2) ** 2
    return float(0.5 + num / den)
