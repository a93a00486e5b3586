# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from pathlib import Path
import pytest
import numpy as np
from hybridswarm.common import errors
from . import data


def test_load_dataset(tmp_path: Path) -> None:
    filepath = tmp_path / "dataset.csv"
    filepath.write_text("1,2,3\n\n4, 5 ,6.5\n-1,0,2e1\n")
    inputs, targets = data.load_dataset(filepath)
    np.testing.assert_array_equal(inputs, [[1, 2], [4, 5], [-1, 0]])
    np.testing.assert_array_equal(targets, [3, 6.5, 20])


@pytest.mark.parametrize(
    "content,expected",
    [
        ("1,2\n3,abc\n", "'abc' at data row 2 "),
        ("1,2\n\n\n3,\n", "at data row 2 \\(blank lines excluded\\), column 2"),
        ("1\n2\n", "at least 2 columns"),
    ],
)
def test_load_dataset_errors(tmp_path: Path, content: str, expected: str) -> None:
    filepath = tmp_path / "dataset.csv"
    filepath.write_text(content)
    with pytest.raises(errors.HybridSwarmValueError, match=expected):
        data.load_dataset(filepath)


def test_load_dataset_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        data.load_dataset(tmp_path / "missing.csv")


def test_normalize() -> None:
    output = data.normalize([[0.0, 3.0, 1.0], [5.0, 3.0, 2.0], [10.0, 3.0, 0.0]])
    np.testing.assert_array_almost_equal(output, [[0.0, 0.0, 0.5], [0.5, 0.0, 1.0], [1.0, 0.0, 0.0]])
    np.testing.assert_array_almost_equal(data.normalize([2.0, 4.0, 3.0]), [0.0, 1.0, 0.5])


def test_train_val_split() -> None:
    inputs = np.arange(20, dtype=float).reshape(10, 2)
    targets = inputs[:, 0] + inputs[:, 1]
    x_train, y_train, x_val, y_val = data.train_val_split(inputs, targets, seed=12)
    assert x_train.shape == (8, 2)
    assert x_val.shape == (2, 2)
    np.testing.assert_array_equal(y_train, x_train.sum(axis=1))
    np.testing.assert_array_equal(y_val, x_val.sum(axis=1))
    assert sorted(y_train.tolist() + y_val.tolist()) == sorted(targets.tolist())
    x_train2, *_ = data.train_val_split(inputs, targets, seed=12)
    np.testing.assert_array_equal(x_train, x_train2)


def test_train_val_split_errors() -> None:
    with pytest.raises(errors.HybridSwarmValueError):
        data.train_val_split(np.zeros((4, 2)), np.zeros(4), train_fraction=1.0)
    with pytest.raises(errors.DimensionMismatchError):
        data.train_val_split(np.zeros((4, 2)), np.zeros(3))
