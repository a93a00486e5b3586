# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import functools
import numpy as np
import hybridswarm.common.typing as tp
from hybridswarm.functions import corefuncs
from hybridswarm.functions import gradients
from hybridswarm.functions import mlp
from hybridswarm.optimization import callbacks
from hybridswarm.optimization import optimizerlib as optlib
from . import data


logger = logging.getLogger(__name__)
Optimizer = tp.Union[optlib.Swarm, optlib.HybridSwarm]


class RunResult(tp.NamedTuple):
    best_position: np.ndarray
    best_fitness: float
    elapsed: float  # in seconds


class TrainingResult(tp.NamedTuple):
    weights: np.ndarray
    train_mse: float
    val_mse: float
    elapsed: float  # in seconds


def _get_configured(optimizer: tp.Union[str, optlib.ConfSwarm]) -> optlib.ConfSwarm:
    if isinstance(optimizer, str):
        return optlib.registry.get_registered(optimizer)  # type: ignore
    return optimizer


def _run(
    optimizer: Optimizer,
    fitness: tp.FitnessFunction,
    gradient: tp.Optional[tp.GradientFunction],
    num_iterations: int,
    csv_path: tp.Optional[tp.PathLike],
    log_every: int,
) -> float:
    """Runs the optimizer and returns the elapsed time"""
    if csv_path is not None:
        optimizer.register_callback("step", callbacks.ProgressLogger(csv_path, append=False, log_every=log_every))
    optimizer.register_callback("step", callbacks.OptimizationLogger(logger=logger, log_level=logging.DEBUG))
    t0 = time.perf_counter()
    for _ in range(num_iterations):
        if isinstance(optimizer, optlib.HybridSwarm):
            optimizer.step(fitness, gradient)
        else:
            optimizer.step(fitness)
    optimizer.remove_all_callbacks()
    return time.perf_counter() - t0


# pylint: disable=too-many-arguments
def run_swarm(
    optimizer: tp.Union[str, optlib.ConfSwarm],
    function: tp.Union[str, tp.FitnessFunction],
    dimension: int,
    num_iterations: int = 1000,
    num_particles: int = 40,
    seed: tp.Optional[int] = None,
    csv_path: tp.Optional[tp.PathLike] = None,
    log_every: int = 1,
    gradient: tp.Optional[tp.GradientFunction] = None,
    epsilon: float = 1e-4,
) -> RunResult:
    """Minimizes a benchmark function with a swarm optimizer

    Parameters
    ----------
    optimizer: str or ConfSwarm
        name of a registered optimizer (eg: "PSO", "HybridPSO") or configured optimizer
    function: str or callable
        name of a function of the corefuncs registry (eg: "sphere") or fitness function
    dimension: int
        dimension of the search space
    num_iterations: int
        number of steps
    num_particles: int
        population size
    seed: int or None
        seed of the optimizer
    csv_path: path or None
        if provided, the best fitness is written to this CSV file every :code:`log_every` steps
    log_every: int
        number of steps between two CSV rows
    gradient: callable or None
        gradient function for hybrid optimizers, defaults to a forward finite-difference
        estimate of the function gradient
    epsilon: float
        relative step of the default finite-difference gradient
    """
    func = corefuncs.registry.get_registered(function) if isinstance(function, str) else function
    opt = _get_configured(optimizer)(num_particles, dimension, random_state=seed)
    if gradient is None and isinstance(opt, optlib.HybridSwarm):
        gradient = functools.partial(gradients.forward_difference, func, epsilon=epsilon)
    elapsed = _run(opt, func, gradient, num_iterations, csv_path, log_every)
    logger.info("%s reached %s in %.3fs", opt.name, opt.global_best_fitness, elapsed)
    return RunResult(np.array(opt.global_best_position), opt.global_best_fitness, elapsed)


# pylint: disable=too-many-locals
def train_network(
    csv_path: tp.PathLike,
    optimizer: tp.Union[str, optlib.ConfSwarm] = "HybridPSO",
    hidden_neurons: int = 10,
    num_particles: int = 50,
    num_iterations: int = 1000,
    batch_size: int = 64,
    epsilon: float = 1e-4,
    seed: tp.Optional[int] = 42,
    log_path: tp.Optional[tp.PathLike] = None,
    log_every: int = 1,
) -> TrainingResult:
    """Trains a one-hidden-layer sigmoid network on a regression dataset
    by minimizing the training mean squared error with a swarm optimizer.

    Parameters
    ----------
    csv_path: path
        comma separated dataset, the last column being the target (see :code:`data.load_dataset`).
        Features and targets are min-max normalized, then split 80/20 into training and validation sets.
    optimizer: str or ConfSwarm
        name of a registered optimizer or configured optimizer
    hidden_neurons: int
        number of neurons of the hidden layer
    num_particles: int
        population size
    num_iterations: int
        number of steps
    batch_size: int
        size of the mini-batches used for the finite-difference gradients of hybrid optimizers
    epsilon: float
        relative step of the finite-difference gradients
    seed: int or None
        seed for the split, the network and the optimizer (mini-batch sampling uses
        its own random state, seeded from the same source)
    log_path: path or None
        if provided, the best training MSE is written to this CSV file every :code:`log_every` steps
    log_every: int
        number of steps between two CSV rows
    """
    inputs, targets = data.load_and_normalize(csv_path)
    x_train, y_train, x_val, y_val = data.train_val_split(inputs, targets, seed=seed)
    rng = np.random.RandomState(seed)
    network = mlp.FeedForwardNetwork([inputs.shape[1], hidden_neurons, 1], random_state=rng)
    train_mse = mlp.MeanSquaredError(network, x_train, y_train)
    opt = _get_configured(optimizer)(num_particles, train_mse.dimension, random_state=rng)
    gradient: tp.Optional[tp.GradientFunction] = None
    if isinstance(opt, optlib.HybridSwarm):
        gradient = gradients.MiniBatchGradient(
            train_mse.batch_loss,
            len(train_mse),
            batch_size=batch_size,
            epsilon=epsilon,
            random_state=np.random.RandomState(rng.randint(2 ** 32, dtype=np.uint32)),
        )
    elapsed = _run(opt, train_mse, gradient, num_iterations, log_path, log_every)
    weights = np.array(opt.global_best_position)
    val_mse = mlp.MeanSquaredError(network, x_val, y_val)(weights)
    logger.info("%s trained in %.3fs: train MSE %s, validation MSE %s", opt.name, elapsed, opt.global_best_fitness, val_mse)
    return TrainingResult(weights, opt.global_best_fitness, val_mse, elapsed)
