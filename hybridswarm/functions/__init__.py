# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from . import corefuncs as corefuncs
from .gradients import forward_difference as forward_difference
from .gradients import MiniBatchGradient as MiniBatchGradient
from .mlp import FeedForwardNetwork as FeedForwardNetwork
from .mlp import MeanSquaredError as MeanSquaredError
