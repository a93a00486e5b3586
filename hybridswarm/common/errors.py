# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class HybridSwarmError(Exception):
    """Base class for error raised by hybridswarm"""


class HybridSwarmWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class HybridSwarmRuntimeError(RuntimeError, HybridSwarmError):
    """Runtime error raised by hybridswarm"""


class HybridSwarmTypeError(TypeError, HybridSwarmError):
    """Type error raised by hybridswarm"""


class HybridSwarmValueError(ValueError, HybridSwarmError):
    """Value error raised by hybridswarm"""


class DimensionMismatchError(HybridSwarmValueError):
    """A vector does not have the dimension of the search space"""


# warnings


class HybridSwarmRuntimeWarning(RuntimeWarning, HybridSwarmWarning):
    """Runtime warning raised by hybridswarm"""


class BadLossWarning(HybridSwarmRuntimeWarning):
    """Provided loss is unhelpful (NaN or infinite), it is treated as +inf"""


class BadGradientWarning(HybridSwarmRuntimeWarning):
    """Provided gradient has non-finite components, the refinement is dropped"""
