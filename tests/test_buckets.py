import math
from datetime import timedelta

import pytest

from scopemetrics.metrics.buckets import (
    DEFAULT_BUCKETS,
    Buckets,
    DurationBuckets,
    ValueBuckets,
    exponential_duration_buckets,
    exponential_value_buckets,
    linear_duration_buckets,
    linear_value_buckets,
    to_seconds,
)
from scopemetrics.utils.exceptions import InvalidBucketsError


def test_boundaries_sorted_deduped_and_finite():
    b = ValueBuckets([5, 1, 3, 3, math.inf, -math.inf])
    assert list(b) == [1.0, 3.0, 5.0]
    assert len(b) == 3


def test_bucket_bounds_cover_real_line():
    b = ValueBuckets([1, 2])
    assert b.bucket_bounds() == ((-math.inf, 1.0), (1.0, 2.0), (2.0, math.inf))
    assert ValueBuckets([]).bucket_bounds() == ((-math.inf, math.inf),)


def test_index_of_uses_inclusive_upper_bound():
    b = ValueBuckets([1, 2])
    assert b.index_of(0.5) == 0
    assert b.index_of(1) == 0
    assert b.index_of(1.5) == 1
    assert b.index_of(2) == 1
    assert b.index_of(100) == 2


def test_kind_distinguishes_equality():
    assert ValueBuckets([1, 2]) == ValueBuckets([2, 1])
    assert ValueBuckets([1, 2]) != DurationBuckets([1, 2])
    assert hash(ValueBuckets([1])) == hash(ValueBuckets([1.0]))


def test_duration_buckets_accept_timedelta():
    b = DurationBuckets([timedelta(milliseconds=10), 0.5])
    assert list(b) == [0.01, 0.5]
    assert to_seconds(timedelta(seconds=2)) == 2.0


def test_linear_and_exponential_generators():
    assert list(linear_value_buckets(0, 10, 3)) == [0.0, 10.0, 20.0]
    assert list(exponential_value_buckets(1, 2, 4)) == [1.0, 2.0, 4.0, 8.0]
    d = linear_duration_buckets(timedelta(milliseconds=100), timedelta(milliseconds=100), 2)
    assert isinstance(d, DurationBuckets)
    assert list(d) == pytest.approx([0.1, 0.2])
    assert list(exponential_duration_buckets(0.001, 10, 3)) == pytest.approx([0.001, 0.01, 0.1])


@pytest.mark.parametrize('call', [
    lambda: linear_value_buckets(0, 1, 0),
    lambda: linear_value_buckets(0, 0, 3),
    lambda: exponential_value_buckets(0, 2, 3),
    lambda: exponential_value_buckets(1, 1, 3),
])
def test_invalid_generator_parameters(call):
    with pytest.raises(InvalidBucketsError):
        call()
    with pytest.raises(ValueError):
        call()


def test_default_buckets_are_duration_kind():
    assert isinstance(DEFAULT_BUCKETS, Buckets)
    assert DEFAULT_BUCKETS.kind == 'duration'
    assert DEFAULT_BUCKETS[0] == 0.005 and DEFAULT_BUCKETS[-1] == 10.0
