# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from pathlib import Path
import numpy as np
import pandas as pd
import hybridswarm.common.typing as tp
from hybridswarm.common import errors


def load_dataset(filepath: tp.PathLike) -> tp.Tuple[np.ndarray, np.ndarray]:
    """Loads a comma separated file without header, where the last column is
    the target and the other columns are the features.

    Returns
    -------
    np.ndarray
        the inputs, with shape (num_samples, num_features)
    np.ndarray
        the targets, with shape (num_samples,)
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Dataset file not found: {filepath}")
    df = pd.read_csv(filepath, header=None, skip_blank_lines=True, dtype=str)
    if df.shape[1] < 2:
        raise errors.HybridSwarmValueError(f"Dataset {filepath} requires at least 2 columns (found {df.shape[1]})")
    numeric = df.apply(lambda col: pd.to_numeric(col.str.strip(), errors="coerce"))
    invalid = numeric.isna()
    if invalid.values.any():
        row, col = np.argwhere(invalid.values)[0]
        raise errors.HybridSwarmValueError(
            f"Invalid value {df.iloc[row, col]!r} at data row {row + 1} (blank lines excluded), "
            f"column {col + 1} of {filepath}"
        )
    values = numeric.values.astype(float)
    return values[:, :-1], values[:, -1]


def normalize(array: tp.ArrayLike) -> np.ndarray:
    """Min-max scales each column into [0, 1] (constant columns are mapped to 0)"""
    array = np.asarray(array, dtype=float)
    mini = array.min(axis=0)
    span = array.max(axis=0) - mini
    return (array - mini) / np.where(span > 0, span, 1.0)


def load_and_normalize(filepath: tp.PathLike) -> tp.Tuple[np.ndarray, np.ndarray]:
    """Loads a dataset (see :code:`load_dataset`) and min-max scales both inputs and targets"""
    inputs, targets = load_dataset(filepath)
    return normalize(inputs), normalize(targets)


def train_val_split(
    inputs: np.ndarray, targets: np.ndarray, train_fraction: float = 0.8, seed: tp.Optional[int] = 42
) -> tp.Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Shuffles the samples and splits them into a training and a validation set

    Returns
    -------
    tuple
        training inputs, training targets, validation inputs, validation targets
    """
    if not 0 < train_fraction < 1:
        raise errors.HybridSwarmValueError(f"train_fraction must be in ]0, 1[ (got {train_fraction})")
    if len(inputs) != len(targets):
        raise errors.DimensionMismatchError(f"Got {len(inputs)} inputs but {len(targets)} targets")
    permutation = np.random.RandomState(seed).permutation(len(inputs))
    split = int(train_fraction * len(inputs))
    train, val = permutation[:split], permutation[split:]
    return inputs[train], targets[train], inputs[val], targets[val]
