import math
from typing import Iterable, Sequence

from clustercost.models import Vector

# samples within this many seconds of each other are merged
BUCKET_SECONDS = 10.0


def round_timestamp(ts: "float", precision: "float") -> "float":
    """
    rounds ts to the nearest multiple of precision, with halves
    rounded away from zero; e.g. at precision 10, 24 goes to 20
    and 25 goes to 30.
    """
    steps = math.floor(abs(ts) / precision + 0.5)
    return math.copysign(steps * precision, ts)


def add_vectors(xs: "Sequence[Vector]", ys: "Sequence[Vector]") -> "list[Vector]":
    """
    adds two series. Timestamps are bucketed to the nearest ten
    seconds so samples taken a few seconds apart line up; values
    sharing a bucket are summed and the rest pass through. The
    inputs are left untouched.

    e.g. [(t=10, 1), (t=20, 2)] + [(t=20, 2), (t=30, 3)]
         = [(t=10, 1), (t=20, 4), (t=30, 3)]
    """
    if not xs:
        return list(ys)
    if not ys:
        return list(xs)

    sums: "dict[float, float]" = {}
    for v in (*xs, *ys):
        # zero marks a sample with no timestamp
        if v.timestamp == 0:
            continue
        ts = round_timestamp(v.timestamp, BUCKET_SECONDS)
        sums[ts] = sums.get(ts, 0.0) + v.value

    return [Vector(timestamp=ts, value=sums[ts]) for ts in sorted(sums)]


def total_vector(vectors: "Iterable[Vector]") -> "float":
    return sum((v.value for v in vectors), 0.0)
