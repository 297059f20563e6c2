"""
Test helper functions.
"""

import numpy as np

from mfupsi.params import Params
from mfupsi.primitives.prf import Keys, MixPRF
from mfupsi.protocol import MFUPSIProtocol, generate_client_data

TEST_MODULUS = 65537


def make_prf(seed: int = 0) -> MixPRF:
    """PRF with reproducible keys."""
    return MixPRF(Keys.generate(np.random.default_rng(seed)))


def random_elements(n: int, seed: int = 0) -> set[int]:
    """n distinct random 64-bit elements."""
    return generate_client_data(n, np.random.default_rng(seed))


def small_params(**overrides) -> Params:
    """
    One party, a few small partitions, 17-bit prime.

    d1 = 16, w = 8, 40 elements -> b = ceil(1.2 * 40 / 16) = 3.
    """
    fields = dict(
        num_clients=1,
        dataset_size=40,
        partition_size=16,
        modulus=TEST_MODULUS,
        band_width=8,
        num_updates=6,
        num_queries=6,
        expansion_factor=0.2,
        pir_dimension=2,
    )
    fields.update(overrides)
    return Params(**fields)


def setup_protocol(params: Params, seed: int = 0, **kwargs) -> MFUPSIProtocol:
    """Seeded protocol with keys generated and setup done."""
    protocol = MFUPSIProtocol(params, seed=seed, **kwargs)
    protocol.generate_keys()
    protocol.setup_phase()
    return protocol


def find_element(prf: MixPRF, d1: int, w: int, predicate, seed: int = 0, max_attempts: int = 10000) -> int:
    """First random element whose (start, bits) band satisfies predicate."""
    rng = np.random.default_rng(seed)
    for _ in range(max_attempts):
        x = int(rng.integers(0, 1 << 64, dtype=np.uint64))
        if predicate(*prf.band_support(x, d1, w)):
            return x
    raise RuntimeError(f"No element satisfied the band predicate in {max_attempts} draws")


def zero_band_seed(d1: int, max_attempts: int = 64) -> int:
    """
    First key seed whose width-1 band is all zero.

    The first band bit mixes K2 ^ x with x, so x cancels and the bit is
    the same for every element. Under such keys every element with a
    nonzero representation gets an unsolvable equation. A protocol seeded
    with the returned seed draws the same keys as make_prf(seed).
    """
    for seed in range(max_attempts):
        if make_prf(seed).band_support(0, d1, 1)[1] == [0]:
            return seed
    raise RuntimeError(f"No zero-band key in {max_attempts} seeds")
