# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
import numpy as np
from hybridswarm.common import errors
from hybridswarm.common import testing
from . import mlp


def test_num_weights() -> None:
    network = mlp.FeedForwardNetwork([3, 4, 1], random_state=12)
    assert network.num_weights == 4 * (3 + 1) + 1 * (4 + 1)
    assert network.get_weights().shape == (21,)


def test_weight_layout() -> None:
    # 2 inputs, 1 neuron: [w0, w1, bias]
    network = mlp.FeedForwardNetwork([2, 1])
    network.set_weights([1.0, -2.0, 0.5])
    output = network.forward([2.0, 1.0])
    np.testing.assert_array_almost_equal(output, [1 / (1 + np.exp(-0.5))])
    np.testing.assert_array_equal(network.get_weights(), [1.0, -2.0, 0.5])


def test_forward_with_weights_does_not_modify_network() -> None:
    network = mlp.FeedForwardNetwork([2, 3, 1], random_state=1)
    before = network.get_weights()
    weights = np.arange(network.num_weights, dtype=float) / 10
    batch = network.forward(np.ones((4, 2)), weights=weights)
    np.testing.assert_array_equal(network.get_weights(), before)
    assert batch.shape == (4, 1)
    network.set_weights(weights)
    np.testing.assert_array_almost_equal(network.forward(np.ones((4, 2))), batch)


def test_sigmoid_extreme_values() -> None:
    np.testing.assert_array_almost_equal(mlp.sigmoid(np.array([-1e4, 0.0, 1e4])), [0.0, 0.5, 1.0])


@testing.parametrized(
    short_topology=([3],),
    zero_layer=([3, 0, 1],),
)
def test_topology_errors(topology: list) -> None:
    with pytest.raises(errors.HybridSwarmValueError):
        mlp.FeedForwardNetwork(topology)


def test_dimension_errors() -> None:
    network = mlp.FeedForwardNetwork([2, 1])
    with pytest.raises(errors.DimensionMismatchError):
        network.set_weights(np.zeros(4))
    with pytest.raises(errors.DimensionMismatchError):
        network.forward(np.zeros(3))
    with pytest.raises(errors.DimensionMismatchError):
        mlp.MeanSquaredError(network, np.zeros((4, 2)), np.zeros(3))


def test_mean_squared_error() -> None:
    network = mlp.FeedForwardNetwork([1, 1])
    inputs = np.array([[0.0], [1.0], [2.0]])
    targets = np.array([0.5, 0.5, 1.0])
    mse = mlp.MeanSquaredError(network, inputs, targets)
    assert len(mse) == 3
    assert mse.dimension == 2
    # zero weights yield a constant 0.5 output
    np.testing.assert_almost_equal(mse(np.zeros(2)), 0.25 / 3)
    np.testing.assert_almost_equal(mse.batch_loss(np.zeros(2), np.array([0, 1])), 0.0)
    np.testing.assert_almost_equal(mse.batch_loss(np.zeros(2), np.array([2])), 0.25)
