# Copyright (c) Facebook, Inc. and its affiliates. All Rights Reserved.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
import numpy as np
import hybridswarm as hs
from hybridswarm.common import testing
from hybridswarm.functions import corefuncs
from . import optimizerlib
from .optimizerlib import registry


def test_registry_names() -> None:
    testing.printed_assert_equal(sorted(registry), ["BestOnlyHybridPSO", "HybridPSO", "PSO"])
    assert hs.optimizers.registry is registry


@testing.parametrized(**{name: (name,) for name in registry})
def test_registered_optimizers_on_sphere(name: str) -> None:
    optimizer = registry[name](20, 3, random_state=12)
    bests: tp.List[float] = []
    for _ in range(100):
        if isinstance(optimizer, optimizerlib.HybridSwarm):
            optimizer.step(corefuncs.sphere, lambda x: 2 * x)
        else:
            optimizer.step(corefuncs.sphere)
        bests.append(optimizer.global_best_fitness)
    testing.assert_non_increasing(bests)
    assert bests[-1] < 1e-2
    assert optimizer.name == name


def test_best_only_variant_refines_one_particle() -> None:
    optimizer = optimizerlib.BestOnlyHybridPSO(6, 2, random_state=0)
    refined: tp.List[int] = []
    optimizer.register_callback("refine", lambda opt, num, acc: refined.append(num))
    for _ in range(20):
        optimizer.step(corefuncs.sphere, lambda x: 2 * x)
    assert refined == [1, 1]


def test_same_seed_same_swarm() -> None:
    swarms = [optimizerlib.PSO(4, 3, random_state=np.random.RandomState(2)) for _ in range(2)]
    for p1, p2 in zip(*(s.particles for s in swarms)):
        np.testing.assert_array_equal(p1.position, p2.position)
        np.testing.assert_array_equal(p1.velocity, p2.velocity)


def test_package_namespace() -> None:
    optimizer = hs.optimizers.PSO(4, 2, random_state=0)
    assert isinstance(optimizer, hs.optimizers.Swarm)
    assert repr(optimizer) == "Instance of PSO(num_particles=4, dimension=2)"
    assert hs.typing.Type is tp.Type
    optimizer.step(hs.functions.corefuncs.sphere)
    assert optimizer.num_steps == 1
