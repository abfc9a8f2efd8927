import asyncio
import random
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

import pytest

import boundrand.entropy.system as system_mod
from boundrand import BoundedRandom, EntropyUnavailable, InvalidRange, rand_u64, rand_u64_async
from boundrand.constants import ENTROPY_BUFFER_LEN, U64_MAX
from boundrand.core import fold_entropy
from boundrand.errors import BoundRandError


# ---------- Bounds checking ----------


def test_catch_bad_bounds():
    assert rand_u64(0, 0) == 0
    with pytest.raises(InvalidRange) as ei:
        rand_u64(1, 0)
    assert str(ei.value) == "upper_bound should be >= lower_bound"
    assert ei.value.lower_bound == 1
    assert ei.value.upper_bound == 0


def test_invalid_range_is_a_value_error_and_boundrand_error():
    with pytest.raises(ValueError):
        rand_u64(10, 9)
    with pytest.raises(BoundRandError):
        rand_u64(10, 9)


def test_invalid_range_consumes_no_entropy(fixed_source):
    src = fixed_source(bytes(32))
    rng = BoundedRandom(src)
    for lo, hi in ((1, 0), (U64_MAX, 0), (-1, 5), (0, U64_MAX + 1)):
        with pytest.raises(InvalidRange):
            rng.next(lo, hi)
    assert src.calls == []


@pytest.mark.parametrize(
    "lo,hi,name",
    [
        (-1, 0, "lower_bound"),
        (0, U64_MAX + 1, "upper_bound"),
        (U64_MAX + 1, U64_MAX + 2, "lower_bound"),
    ],
)
def test_bounds_outside_u64_rejected(lo, hi, name):
    with pytest.raises(InvalidRange) as ei:
        rand_u64(lo, hi)
    assert str(ei.value) == f"{name} must be within [0, 2**64 - 1]"


@pytest.mark.parametrize("lo,hi", [(0.0, 1), (0, "2"), (True, 2), (0, None)])
def test_non_int_bounds_raise_type_error(lo, hi):
    with pytest.raises(TypeError):
        rand_u64(lo, hi)


# ---------- Off-by-one checks ----------


def test_degenerate_range_is_deterministic():
    rng = BoundedRandom()
    for _ in range(1000):
        assert rng.next(0, 0) == 0
    for _ in range(100):
        assert rng.next(U64_MAX, U64_MAX) == U64_MAX


@pytest.mark.parametrize(
    "lo,hi,expected",
    [
        (1, 1, {1}),
        (0, 1, {0, 1}),
        (1, 2, {1, 2}),
        (0, 2, {0, 1, 2}),
    ],
)
def test_small_ranges_hit_every_value(lo, hi, expected):
    rng = BoundedRandom()
    seen = set()
    for _ in range(1000):
        result = rng.next(lo, hi)
        assert result in expected, result
        seen.add(result)
    assert seen == expected


def test_results_stay_within_arbitrary_bounds():
    picker = random.Random(1234)
    rng = BoundedRandom()
    for _ in range(500):
        a = picker.randrange(0, U64_MAX + 1)
        b = picker.randrange(0, U64_MAX + 1)
        lo, hi = min(a, b), max(a, b)
        assert lo <= rng.next(lo, hi) <= hi


def test_full_range_does_not_overflow():
    rng = BoundedRandom()
    for _ in range(1000):
        assert 0 <= rng.next(0, U64_MAX) <= U64_MAX


def test_full_range_returns_folded_value(fixed_source):
    buf = bytes(range(200, 232))
    rng = BoundedRandom(fixed_source(buf))
    assert rng.next(0, U64_MAX) == fold_entropy(buf)


# ---------- Distribution ----------


def test_rand_distribution():
    # A typical spread puts more than 332_000 into each bucket; 320_000 or
    # less does not happen by chance.
    rng = BoundedRandom()
    counts = Counter(rng.next(1, 3) for _ in range(1_000_000))
    assert set(counts) == {1, 2, 3}
    assert min(counts.values()) >= 320_000, counts


# ---------- Reduction with a controlled source ----------


@pytest.mark.parametrize(
    "folded,lo,hi,expected",
    [
        (7, 0, 2, 1),
        (7, 10, 12, 11),
        (7, 0, 6, 0),
        (7, 0, 7, 7),
        (7, 100, 100, 100),
        (0, 5, 9, 5),
    ],
)
def test_reduction_uses_modulus_plus_lower(folding_source, folded, lo, hi, expected):
    assert BoundedRandom(folding_source(folded)).next(lo, hi) == expected


def test_one_read_of_32_bytes_per_draw(folding_source):
    src = folding_source(3)
    rng = BoundedRandom(src)
    for _ in range(10):
        rng.next(0, 9)
    assert src.calls == [ENTROPY_BUFFER_LEN] * 10


# ---------- Entropy failures ----------


def test_source_failure_is_wrapped(failing_source):
    src = failing_source()
    with pytest.raises(EntropyUnavailable) as ei:
        BoundedRandom(src).next(0, 10)
    err = ei.value
    assert str(err).startswith("unable to call getrandom for seed entropy")
    assert err.source == "failing"
    assert err.__cause__ is src.exc
    assert err.cause is src.exc
    assert src.calls == 1


def test_raw_os_error_from_source_is_wrapped(failing_source):
    src = failing_source(OSError(11, "EAGAIN"))
    with pytest.raises(EntropyUnavailable) as ei:
        BoundedRandom(src).next(0, 1)
    assert isinstance(ei.value.__cause__, OSError)


def test_os_entropy_failure_surfaces(monkeypatch):
    def broken(n):
        raise OSError(38, "Function not implemented")

    monkeypatch.setattr(system_mod.os, "urandom", broken)
    with pytest.raises(EntropyUnavailable) as ei:
        rand_u64(0, 10)
    inner = ei.value.__cause__
    assert isinstance(inner, EntropyUnavailable)
    assert str(inner).startswith("unable to get entropy from the OS")
    assert isinstance(inner.__cause__, OSError)
    assert isinstance(ei.value, RuntimeError)


@pytest.mark.parametrize("length", [0, 16, 31, 33])
def test_wrong_buffer_length_is_unavailable(short_source, length):
    with pytest.raises(EntropyUnavailable) as ei:
        BoundedRandom(short_source(length)).next(0, 1)
    assert f"returned {length} bytes" in str(ei.value)


def test_os_urandom_is_the_default_source(monkeypatch):
    seen = []

    def recording(n):
        seen.append(n)
        return bytes([0] * 30 + [4, 0])

    monkeypatch.setattr(system_mod.os, "urandom", recording)
    assert rand_u64(0, 2) == 1
    assert seen == [ENTROPY_BUFFER_LEN]


# ---------- Async & threads ----------


def test_async_degenerate_range():
    assert asyncio.run(rand_u64_async(5, 5)) == 5


def test_async_matches_sync_for_fixed_source(folding_source):
    rng = BoundedRandom(folding_source(200))
    assert asyncio.run(rng.next_async(0, 9)) == rng.next(0, 9) == 0


def test_async_invalid_range():
    with pytest.raises(InvalidRange):
        asyncio.run(rand_u64_async(2, 1))


def test_async_entropy_failure(failing_source):
    rng = BoundedRandom(failing_source())
    with pytest.raises(EntropyUnavailable):
        asyncio.run(rng.next_async(0, 1))


def test_concurrent_draws_share_one_generator():
    rng = BoundedRandom()
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: rng.next(10, 20), range(2000)))
    assert all(10 <= r <= 20 for r in results)
    assert set(results) == set(range(10, 21))
