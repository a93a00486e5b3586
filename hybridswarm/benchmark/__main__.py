# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import argparse
import hybridswarm.common.typing as tp
from . import core


def _add_common_arguments(parser: argparse.ArgumentParser, optimizer: str, particles: int) -> None:
    parser.add_argument(
        "--optimizer",
        type=str,
        default=optimizer,
        help="Name of an optimizer registered in the optimizers registry (eg: PSO, HybridPSO)",
    )
    parser.add_argument("--iterations", type=int, default=1000, help="Number of optimization steps")
    parser.add_argument("--particles", type=int, default=particles, help="Number of particles of the swarm")
    parser.add_argument(
        "--seed", type=int, default=None, help="Use a seed for reproducibility",
    )
    parser.add_argument(
        "--csv", type=str, default=None, help="Output path for the CSV file of the best fitness along iterations",
    )
    parser.add_argument("--log-every", type=int, default=1, help="Number of steps between two rows of the CSV file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress (logging level DEBUG)")


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a swarm optimizer on a benchmark function or a training task.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    func_parser = subparsers.add_parser("function", help="Minimize a benchmark function")
    func_parser.add_argument(
        "name", type=str, help="name of a function registered in the functions registry (eg: sphere, rastrigin)"
    )
    func_parser.add_argument("--dim", type=int, default=10, help="Dimension of the search space")
    _add_common_arguments(func_parser, optimizer="PSO", particles=40)
    train_parser = subparsers.add_parser("train", help="Train a one-hidden-layer network on a CSV dataset")
    train_parser.add_argument("dataset", type=str, help="path of the CSV dataset (last column is the target)")
    train_parser.add_argument("--hidden", type=int, default=10, help="Number of hidden neurons")
    train_parser.add_argument(
        "--batch-size", type=int, default=64, help="Mini-batch size for the finite-difference gradients"
    )
    _add_common_arguments(train_parser, optimizer="HybridPSO", particles=50)
    return parser


def main(argv: tp.Optional[tp.List[str]] = None) -> None:
    args = get_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    if args.command == "function":
        result = core.run_swarm(
            args.optimizer,
            args.name,
            args.dim,
            num_iterations=args.iterations,
            num_particles=args.particles,
            seed=args.seed,
            csv_path=args.csv,
            log_every=args.log_every,
        )
        print(f"Best fitness: {result.best_fitness}")
        print(f"Best position: {result.best_position.tolist()}")
        print(f"Elapsed time: {result.elapsed:.3f}s")
    else:
        training = core.train_network(
            args.dataset,
            optimizer=args.optimizer,
            hidden_neurons=args.hidden,
            num_particles=args.particles,
            num_iterations=args.iterations,
            batch_size=args.batch_size,
            seed=42 if args.seed is None else args.seed,
            log_path=args.csv,
            log_every=args.log_every,
        )
        print(f"Training MSE: {training.train_mse}")
        print(f"Validation MSE: {training.val_mse}")
        print(f"Elapsed time: {training.elapsed:.3f}s")
    if args.csv is not None:
        print(f"Saved progress to {args.csv}")


if __name__ == "__main__":
    main()
