"""
Tests for hypercube addressing and parameter derivation.
"""

import pytest

from mfupsi.errors import InvalidDimension, InvalidHypercube
from mfupsi.params import Params
from mfupsi.pir.hypercube import Hypercube, compute_pir_dimension_size

from helpers import TEST_MODULUS, small_params


class TestDimensionSize:
    """Test L = ceil(b^(1/z)) with integer correction."""

    @pytest.mark.parametrize(
        "b, z, expected",
        [
            (1, 1, 1),
            (4, 1, 4),
            (1, 2, 1),
            (100, 2, 10),
            (101, 2, 11),
            (125, 3, 5),
            (126, 3, 6),
            (1 << 20, 2, 1 << 10),
            (1000, 3, 10),
        ],
    )
    def test_exact_values(self, b, z, expected):
        assert compute_pir_dimension_size(b, z) == expected

    def test_edge_covers_partitions(self):
        for b in range(1, 300):
            for z in (1, 2, 3, 4):
                edge = compute_pir_dimension_size(b, z)
                assert edge ** z >= b
                assert edge == 1 or (edge - 1) ** z < b

    def test_invalid_inputs(self):
        with pytest.raises(InvalidHypercube, match="pir_dimension must be at least 1"):
            compute_pir_dimension_size(10, 0)
        with pytest.raises(InvalidHypercube, match="num_partitions must be at least 1"):
            compute_pir_dimension_size(0, 2)


class TestHypercube:
    """Test digit decomposition."""

    def test_decompose_msb_first(self):
        cube = Hypercube(9, 2, 3)
        assert cube.decompose(0) == (0, 0)
        assert cube.decompose(5) == (1, 2)
        assert cube.decompose(8) == (2, 2)

    def test_round_trip_all_slots(self):
        for cube in (Hypercube(10, 2, 4), Hypercube(27, 3, 3), Hypercube(5, 1, 5)):
            for j in range(cube.num_slots):
                digits = cube.decompose(j)
                assert len(digits) == cube.dimension
                assert cube.recompose(digits) == j

    def test_out_of_range(self):
        cube = Hypercube(9, 2, 3)
        with pytest.raises(IndexError):
            cube.decompose(9)
        with pytest.raises(ValueError, match="Expected 2 digits"):
            cube.recompose((1,))
        with pytest.raises(ValueError, match="outside"):
            cube.recompose((3, 0))

    def test_too_small_edge(self):
        with pytest.raises(InvalidHypercube, match="cannot cover"):
            Hypercube(5, 2, 2)

    def test_active_slots(self):
        cube = Hypercube(20, 3, 3)
        assert [cube.active_slots(r) for r in range(3)] == [27, 9, 3]

    def test_for_partitions(self):
        cube = Hypercube.for_partitions(101, 2)
        assert cube.edge == 11
        assert cube.num_slots == 121


class TestParams:
    """Test parameter validation and derived values."""

    def test_derived_partitions(self):
        params = small_params()
        assert params.num_partitions == 3  # ceil(1.2 * 40 / 16)
        assert params.fold_edge == 2
        assert params.num_slots == 4
        assert params.word_bytes == 3
        assert params.hypercube == Hypercube(3, 2, 2)

    def test_presets(self):
        test = Params.test()
        assert test.num_clients == 3
        assert test.num_partitions == 29  # ceil(1.2 * 1024 * 3 / 128)
        assert test.fold_edge == 6
        default = Params.default()
        assert default.num_partitions == 1536  # ceil(1.2 * 65536 * 10 / 512)
        assert default.fold_edge == 40
        assert default.num_updates == 655
        tiny = Params.tiny()
        assert tiny.num_partitions == 4
        assert tiny.fold_edge == 4

    def test_fold_edge_override_too_small(self):
        with pytest.raises(InvalidHypercube, match="cannot cover"):
            small_params(fold_edge=1)

    def test_fold_edge_override_larger(self):
        params = small_params(fold_edge=5)
        assert params.num_slots == 25

    def test_invalid_band_width(self):
        with pytest.raises(InvalidDimension, match="band_width"):
            small_params(band_width=17)
        with pytest.raises(InvalidDimension, match="band_width"):
            small_params(band_width=0)

    def test_invalid_partition_size(self):
        with pytest.raises(InvalidDimension, match="partition_size must be at least 1"):
            small_params(partition_size=0)

    def test_composite_modulus(self):
        with pytest.raises(ValueError, match="modulus must be prime"):
            small_params(modulus=TEST_MODULUS + 1)

    def test_invalid_counts(self):
        with pytest.raises(ValueError, match="num_clients must be at least 1"):
            small_params(num_clients=0)
        with pytest.raises(ValueError, match="dataset_size must be at least 1"):
            small_params(dataset_size=0)
        with pytest.raises(ValueError, match="num_updates must be non-negative"):
            small_params(num_updates=-1)

    def test_invalid_pir_dimension(self):
        with pytest.raises(InvalidHypercube):
            small_params(pir_dimension=0)
