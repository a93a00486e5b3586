# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import csv
import time
import logging
from pathlib import Path
import pandas as pd
import hybridswarm.common.typing as tp

global_logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------------------

class OptimizationLogger:
    """Logger to register as "step" callback in an optimizer, for logging
    the best fitness regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_steps: int
        max number of steps before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_steps: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_steps > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_steps = int(log_interval_steps)
        self._log_interval_seconds = log_interval_seconds
        self._next_step = self._log_interval_steps
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, optimizer: tp.SwarmLike, *args: tp.Any) -> None:
        if time.time() >= self._next_time or optimizer.num_steps >= self._next_step:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_step = optimizer.num_steps + self._log_interval_steps
            self._logger.log(
                self._log_level,
                "After %s steps, best fitness is %s",
                optimizer.num_steps,
                optimizer.global_best_fitness,
            )

# -------------------------------------------------------------------------------------

class ProgressLogger:
    """Writes the best fitness into a CSV file during optimization,
    on the first step and then every :code:`log_every` steps.

    Parameters
    ----------
    filepath: str or pathlib.Path
        the path to dump data to (parent directories are created)
    append: bool
        whether to append the file (otherwise it replaces it)
    log_every: int
        number of steps between two rows

    Example
    -------

    .. code-block:: python

        logger = ProgressLogger(filepath)
        optimizer.register_callback("step", logger)
        for _ in range(100):
            optimizer.step(fitness)
        df = logger.load()

    Note
    ----
    Columns are :code:`iteration`, :code:`best_fitness` and :code:`elapsed_ms`
    (milliseconds since the creation of the logger).
    """

    columns = ("iteration", "best_fitness", "elapsed_ms")

    def __init__(self, filepath: tp.PathLike, append: bool = True, log_every: int = 1) -> None:
        assert log_every > 0
        self._filepath = Path(filepath)
        self._log_every = int(log_every)
        self._start = time.perf_counter()
        if self._filepath.exists() and not append:
            self._filepath.unlink()
        self._filepath.parent.mkdir(exist_ok=True, parents=True)

    @property
    def filepath(self) -> Path:
        return self._filepath

    def __call__(self, optimizer: tp.SwarmLike, *args: tp.Any) -> None:
        iteration = optimizer.num_steps
        if iteration != 1 and iteration % self._log_every:
            return
        elapsed = 1000.0 * (time.perf_counter() - self._start)
        write_header = not self._filepath.exists() or not self._filepath.stat().st_size
        with self._filepath.open("a", newline="") as f:
            writer = csv.writer(f, lineterminator="\n")
            if write_header:
                writer.writerow(self.columns)
            writer.writerow([iteration, repr(optimizer.global_best_fitness), f"{elapsed:.3f}"])

    def load(self) -> pd.DataFrame:
        """Loads data from the log file"""
        if not self._filepath.exists():
            return pd.DataFrame(columns=list(self.columns))
        return pd.read_csv(self._filepath)
