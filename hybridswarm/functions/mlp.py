# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import hybridswarm.common.typing as tp
from hybridswarm.common import errors
from hybridswarm.common import tools
from hybridswarm.optimization import utils

Layer = tp.Tuple[np.ndarray, np.ndarray]  # weights (num_outputs, num_inputs) and biases (num_outputs,)


def sigmoid(x: np.ndarray) -> np.ndarray:
    return 0.5 * (1.0 + np.tanh(0.5 * x))  # overflow-free formulation


class FeedForwardNetwork:
    """Fully connected network with sigmoid activations on all layers,
    whose weights can be set from (or provided as) a flat vector.

    Parameters
    ----------
    topology: sequence of int
        number of units of each layer, starting with the number of inputs
    random_state: None, int or np.random.RandomState
        random state for the initial weights (uniform in [-1, 1], biases at 0)

    Note
    ----
    The flat vector layout is, for each layer and then for each neuron of the layer,
    the weights of all its inputs followed by its bias.
    """

    def __init__(self, topology: tp.Sequence[int], random_state: tp.RandomStateLike = None) -> None:
        if len(topology) < 2:
            raise errors.HybridSwarmValueError(f"A topology requires at least 2 layers (got {topology})")
        self.topology = tuple(tools.as_positive_int(n, "layer size") for n in topology)
        rng = utils.as_random_state(random_state)
        self.layers: tp.List[Layer] = [
            (rng.uniform(-1, 1, size=(n_out, n_in)), np.zeros(n_out))
            for n_in, n_out in zip(self.topology[:-1], self.topology[1:])
        ]

    @property
    def num_weights(self) -> int:
        return sum(n_out * (n_in + 1) for n_in, n_out in zip(self.topology[:-1], self.topology[1:]))

    def unpack(self, weights: tp.ArrayLike) -> tp.List[Layer]:
        """Converts a flat weight vector into the per-layer weights and biases"""
        weights = utils.check_vector(weights, self.num_weights, name="weights")
        layers = []
        start = 0
        for n_in, n_out in zip(self.topology[:-1], self.topology[1:]):
            block = weights[start: start + n_out * (n_in + 1)].reshape(n_out, n_in + 1)
            layers.append((block[:, :-1], block[:, -1]))
            start += block.size
        return layers

    def get_weights(self) -> np.ndarray:
        return np.concatenate([np.concatenate([w, b[:, None]], axis=1).ravel() for w, b in self.layers])

    def set_weights(self, weights: tp.ArrayLike) -> None:
        self.layers = [(w.copy(), b.copy()) for w, b in self.unpack(weights)]

    def forward(self, inputs: tp.ArrayLike, weights: tp.Optional[tp.ArrayLike] = None) -> np.ndarray:
        """Computes the outputs for one input vector or a batch of input vectors (one per row).
        If weights are provided, they are used instead of the weights of the network
        (which are left untouched).
        """
        layers = self.layers if weights is None else self.unpack(weights)
        output = np.asarray(inputs, dtype=float)
        if output.shape[-1] != self.topology[0]:
            raise errors.DimensionMismatchError(f"Expected {self.topology[0]} inputs but got shape {output.shape}")
        for w, b in layers:
            output = sigmoid(output @ w.T + b)
        return output

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(topology={list(self.topology)})"


class MeanSquaredError:
    """Fitness function computing the mean squared error of a network on a dataset,
    as a function of the flat weight vector.

    Parameters
    ----------
    network: FeedForwardNetwork
        network to evaluate (its own weights are never modified)
    inputs: array-like
        inputs of the dataset, one sample per row
    targets: array-like
        targets of the dataset, one sample per row (or a vector for single output networks)

    Note
    ----
    Evaluations do not modify any state, so the instance can be evaluated concurrently.
    """

    def __init__(self, network: FeedForwardNetwork, inputs: tp.ArrayLike, targets: tp.ArrayLike) -> None:
        self.network = network
        self.inputs = np.asarray(inputs, dtype=float)
        targets = np.asarray(targets, dtype=float)
        self.targets = targets.reshape(len(targets), -1)
        if self.inputs.ndim != 2 or len(self.inputs) != len(self.targets):
            raise errors.DimensionMismatchError(
                f"Inputs of shape {self.inputs.shape} do not match targets of shape {targets.shape}"
            )
        if self.targets.shape[1] != network.topology[-1]:
            raise errors.DimensionMismatchError(
                f"Network has {network.topology[-1]} outputs but targets have {self.targets.shape[1]} columns"
            )

    @property
    def dimension(self) -> int:
        return self.network.num_weights

    def __len__(self) -> int:
        return len(self.targets)

    def __call__(self, weights: np.ndarray) -> float:
        return self._mse(weights, self.inputs, self.targets)

    def batch_loss(self, weights: np.ndarray, indices: np.ndarray) -> float:
        """Mean squared error on the samples with provided indices"""
        return self._mse(weights, self.inputs[indices], self.targets[indices])

    def _mse(self, weights: np.ndarray, inputs: np.ndarray, targets: np.ndarray) -> float:
        residuals = self.network.forward(inputs, weights=weights) - targets
        return float(np.mean(np.sum(residuals ** 2, axis=1)))
