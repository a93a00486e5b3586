# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

# pylint: disable=unused-import
from .particle import Particle as Particle
from .swarm import registry as registry
from .swarm import load as load
from .swarm import Swarm as Swarm
from .swarm import ConfSwarm as ConfSwarm
from .swarm import PSO as PSO
from .hybrid import HybridSwarm as HybridSwarm
from .hybrid import ConfHybridSwarm as ConfHybridSwarm
from .hybrid import HybridPSO as HybridPSO

# variants
BestOnlyHybridPSO = ConfHybridSwarm(num_elites=1).set_name("BestOnlyHybridPSO", register=True)
