# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Finite-difference gradient estimators, to be used as gradient functions
of hybrid swarms when no analytical gradient is available.
"""

import numpy as np
import hybridswarm.common.typing as tp
from hybridswarm.common import errors
from hybridswarm.optimization import utils


def forward_difference(
    loss: tp.Callable[[np.ndarray], float], position: tp.ArrayLike, epsilon: float = 1e-4
) -> np.ndarray:
    """Forward (one-sided) finite-difference estimate of the gradient of a loss.

    Parameters
    ----------
    loss: callable
        function mapping a position to a scalar
    position: array-like
        point where the gradient is estimated (not modified)
    epsilon: float
        relative step: dimension d is perturbed by :code:`epsilon * (1 + |position[d]|)`

    Returns
    -------
    np.ndarray
        the estimated gradient, with the same shape as the position

    Note
    ----
    This costs :code:`dimension + 1` evaluations of the loss.
    """
    if not epsilon > 0:
        raise errors.HybridSwarmValueError(f"epsilon must be positive (got {epsilon!r})")
    w = np.array(position, dtype=float, copy=True)
    if w.ndim != 1:
        raise errors.DimensionMismatchError(f"Expected a 1d position but got shape {w.shape}")
    f0 = float(loss(w))
    gradient = np.zeros_like(w)
    for d, value in enumerate(w.copy()):
        step = epsilon * (1.0 + abs(value))
        w[d] = value + step
        gradient[d] = (float(loss(w)) - f0) / step
        w[d] = value
    return gradient


class MiniBatchGradient:
    """Gradient function estimating the gradient of a loss averaged on a random mini-batch of samples.
    A new mini-batch is sampled (without replacement) at each call, so that two calls at
    the same position generally yield different estimates.

    Parameters
    ----------
    batch_loss: callable
        function :code:`batch_loss(position, indices)` returning the loss of the position
        on the samples with given indices
    num_samples: int
        total number of samples available
    batch_size: int
        number of samples per mini-batch (capped to num_samples)
    epsilon: float
        relative step of the forward finite difference (see :code:`forward_difference`)
    random_state: None, int or np.random.RandomState
        random state (or seed) used for sampling the mini-batches

    Usage
    -----
    .. code-block:: python

        gradient = MiniBatchGradient(mse.batch_loss, num_samples=len(mse), batch_size=64)
        optimizer.step(mse, gradient)
    """

    def __init__(
        self,
        batch_loss: tp.Callable[[np.ndarray, np.ndarray], float],
        num_samples: int,
        batch_size: int = 64,
        epsilon: float = 1e-4,
        random_state: tp.RandomStateLike = None,
    ) -> None:
        for name, value in [("num_samples", num_samples), ("batch_size", batch_size)]:
            if int(value) != value or value <= 0:
                raise errors.HybridSwarmValueError(f"{name} must be a positive integer (got {value!r})")
        if not epsilon > 0:
            raise errors.HybridSwarmValueError(f"epsilon must be positive (got {epsilon!r})")
        self.batch_loss = batch_loss
        self.num_samples = int(num_samples)
        self.batch_size = min(int(batch_size), self.num_samples)
        self.epsilon = epsilon
        self._rng = utils.as_random_state(random_state)
        self.num_calls = 0

    @property
    def random_state(self) -> np.random.RandomState:
        return self._rng

    def sample_batch(self) -> np.ndarray:
        """Indices of a new mini-batch"""
        return self._rng.choice(self.num_samples, size=self.batch_size, replace=False)

    def __call__(self, position: tp.ArrayLike) -> np.ndarray:
        indices = self.sample_batch()
        self.num_calls += 1
        return forward_difference(lambda w: self.batch_loss(w, indices), position, epsilon=self.epsilon)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(num_samples={self.num_samples}, batch_size={self.batch_size}, epsilon={self.epsilon})"
