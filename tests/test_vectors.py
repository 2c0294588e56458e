from clustercost.models import Vector
from clustercost.vectors import add_vectors, round_timestamp, total_vector


def _as_map(vectors: "list[Vector]") -> "dict[float, float]":
    return {v.timestamp: v.value for v in vectors}


class TestRoundTimestamp:
    def test_rounds_down_below_half(self) -> "None":
        assert round_timestamp(24, 10) == 20

    def test_rounds_half_away_from_zero(self) -> "None":
        assert round_timestamp(25, 10) == 30
        assert round_timestamp(15, 10) == 20
        assert round_timestamp(-25, 10) == -30

    def test_is_idempotent(self) -> "None":
        for ts in (0.0, 4.9, 5.0, 1699999994.2, 1700000005.0):
            once = round_timestamp(ts, 10)
            assert round_timestamp(once, 10) == once

    def test_is_monotonic(self) -> "None":
        samples = [1.0, 4.0, 5.0, 14.9, 15.0, 26.0, 99.0]
        rounded = [round_timestamp(ts, 10) for ts in samples]
        assert rounded == sorted(rounded)


class TestAddVectors:
    def test_sums_matching_buckets(self) -> "None":
        xs = [Vector(10, 1.0), Vector(20, 2.0)]
        ys = [Vector(20, 2.0), Vector(30, 3.0)]
        result = add_vectors(xs, ys)
        assert result == [Vector(10, 1.0), Vector(20, 4.0), Vector(30, 3.0)]

    def test_aligns_samples_within_bucket(self) -> "None":
        xs = [Vector(1700000001, 1.0)]
        ys = [Vector(1699999998, 2.0)]
        assert add_vectors(xs, ys) == [Vector(1700000000, 3.0)]

    def test_bucket_collision_collapses_to_single_entry(self) -> "None":
        xs = [Vector(1, 1.0), Vector(2, 2.0)]
        ys = [Vector(2, 2.0), Vector(3, 3.0)]
        result = add_vectors(xs, ys)
        assert len(result) == 1
        assert result[0].timestamp == 0
        assert result[0].value == 8.0

    def test_is_commutative(self) -> "None":
        xs = [Vector(12, 1.5), Vector(31, 2.0), Vector(60, 4.0)]
        ys = [Vector(9, 0.5), Vector(58, 1.0), Vector(90, 3.0)]
        assert _as_map(add_vectors(xs, ys)) == _as_map(add_vectors(ys, xs))

    def test_empty_side_is_identity(self) -> "None":
        xs = [Vector(13, 1.0), Vector(27, 2.0)]
        assert add_vectors(xs, []) == xs
        assert add_vectors([], xs) == xs

    def test_conserves_totals(self) -> "None":
        xs = [Vector(10, 1.25), Vector(20, 2.5), Vector(40, 0.25)]
        ys = [Vector(21, 3.0), Vector(50, 1.0)]
        assert total_vector(add_vectors(xs, ys)) == total_vector(xs) + total_vector(ys)

    def test_skips_zero_timestamps(self) -> "None":
        xs = [Vector(0, 100.0), Vector(10, 1.0)]
        ys = [Vector(10, 1.0)]
        assert add_vectors(xs, ys) == [Vector(10, 2.0)]

    def test_result_is_sorted(self) -> "None":
        xs = [Vector(50, 1.0), Vector(10, 1.0)]
        ys = [Vector(30, 1.0)]
        timestamps = [v.timestamp for v in add_vectors(xs, ys)]
        assert timestamps == [10, 30, 50]

    def test_inputs_are_not_modified(self) -> "None":
        xs = [Vector(13, 1.0)]
        ys = [Vector(14, 1.0)]
        add_vectors(xs, ys)
        assert xs == [Vector(13, 1.0)]
        assert ys == [Vector(14, 1.0)]


class TestTotalVector:
    def test_empty_is_zero(self) -> "None":
        assert total_vector([]) == 0.0

    def test_sums_values(self) -> "None":
        assert total_vector([Vector(10, 1.5), Vector(20, 2.5)]) == 4.0
