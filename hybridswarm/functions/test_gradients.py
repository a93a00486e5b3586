# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import pytest
import numpy as np
from hybridswarm.common import errors
from hybridswarm.common import testing
from . import corefuncs
from . import gradients


def test_forward_difference_linear_is_exact() -> None:
    coeffs = np.array([1.0, -2.0, 0.5])
    gradient = gradients.forward_difference(lambda w: float(coeffs.dot(w)), [3.0, 0.0, -100.0])
    np.testing.assert_array_almost_equal(gradient, coeffs, decimal=6)


def test_forward_difference_uses_relative_steps() -> None:
    # for x**2 the forward difference is 2x + step, with step = eps * (1 + |x|)
    position = np.array([0.0, 10.0, -3.0])
    eps = 1e-3
    gradient = gradients.forward_difference(corefuncs.sphere, position, epsilon=eps)
    expected = 2 * position + eps * (1 + np.abs(position))
    np.testing.assert_array_almost_equal(gradient, expected, decimal=8)


def test_forward_difference_leaves_position_untouched() -> None:
    position = np.array([1.0, 2.0])
    calls: tp.List[np.ndarray] = []
    gradients.forward_difference(lambda w: calls.append(w.copy()) or 0.0, position)
    np.testing.assert_array_equal(position, [1.0, 2.0])
    assert len(calls) == 3  # f0 then one per dimension
    np.testing.assert_array_equal(calls[0], position)


@testing.parametrized(
    zero=(0.0,),
    negative=(-1e-4,),
)
def test_forward_difference_bad_epsilon(epsilon: float) -> None:
    with pytest.raises(errors.HybridSwarmValueError):
        gradients.forward_difference(corefuncs.sphere, [1.0], epsilon=epsilon)


def test_forward_difference_bad_shape() -> None:
    with pytest.raises(errors.DimensionMismatchError):
        gradients.forward_difference(lambda w: 0.0, np.zeros((2, 2)))


def test_minibatch_gradient_resamples() -> None:
    data = np.arange(10, dtype=float)
    batches: tp.List[tp.List[int]] = []

    def batch_loss(w: np.ndarray, indices: np.ndarray) -> float:
        batches.append(sorted(indices.tolist()))
        return float(np.mean((w[0] - data[indices]) ** 2))

    gradient = gradients.MiniBatchGradient(batch_loss, num_samples=10, batch_size=4, random_state=12)
    outputs = [gradient(np.array([0.0])) for _ in range(5)]
    assert gradient.num_calls == 5
    assert len(batches) == 10  # 2 evaluations per call in dimension 1
    for k in range(5):
        # the same batch is used for all evaluations of a single call
        assert batches[2 * k] == batches[2 * k + 1]
        assert len(set(batches[2 * k])) == 4
    assert len({tuple(b) for b in batches[::2]}) > 1
    assert len({float(o[0]) for o in outputs}) > 1


def test_minibatch_gradient_capped_batch_is_exact() -> None:
    data = np.arange(5, dtype=float)
    gradient = gradients.MiniBatchGradient(
        lambda w, idx: float(np.mean((w[0] - data[idx]) ** 2)), num_samples=5, batch_size=64, random_state=0
    )
    assert gradient.batch_size == 5
    full = gradients.forward_difference(lambda w: float(np.mean((w[0] - data) ** 2)), [1.0])
    np.testing.assert_array_almost_equal(gradient(np.array([1.0])), full)


def test_minibatch_gradient_is_seedable() -> None:
    outputs = []
    for _ in range(2):
        gradient = gradients.MiniBatchGradient(lambda w, idx: float(np.sum(idx) * w[0] ** 2), 20, batch_size=3, random_state=3)
        outputs.append([gradient(np.array([1.0])) for _ in range(3)])
    np.testing.assert_array_equal(outputs[0], outputs[1])


@testing.parametrized(
    num_samples=(dict(num_samples=0),),
    batch_size=(dict(batch_size=-1),),
    epsilon=(dict(epsilon=0.0),),
)
def test_minibatch_gradient_errors(kwargs: tp.Dict[str, tp.Any]) -> None:
    params: tp.Dict[str, tp.Any] = dict(num_samples=10, batch_size=2, epsilon=1e-4)
    params.update(kwargs)
    with pytest.raises(errors.HybridSwarmValueError):
        gradients.MiniBatchGradient(lambda w, idx: 0.0, **params)
