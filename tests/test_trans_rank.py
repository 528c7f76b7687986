from numpy import array, isnan
from numpy.testing import assert_array_almost_equal, assert_array_equal

from ripplefind.graphoelement import Ripple, Ripples
from ripplefind.trans import intersect_intervals, rank_order, rank_units

# six units, firing in order in the first two events, in reverse in the third
spike_times = [array([0.10, 2.10, 4.60, 10.]),
               array([0.20, 2.20, 4.50]),
               array([0.30, 2.30, 4.40]),
               array([0.40, 2.40, 4.30]),
               array([0.50, 2.50, 4.20]),
               array([0.60, 2.60, 4.10, 6.5]),
               ]
ripples = Ripples(events=[Ripple(0, 0.5, 1, 6),
                          Ripple(2, 2.5, 3, 6),
                          Ripple(4, 4.5, 5, 6),
                          Ripple(6, 6.5, 7, 6),
                          ])


def test_rank_units():
    ranks = rank_units(spike_times, ripples.timestamps)
    assert ranks.shape == (6, 4)
    assert_array_almost_equal(ranks[:, 0], array([1, 2, 3, 4, 5, 6]) / 6)
    assert_array_almost_equal(ranks[:, 2], array([6, 5, 4, 3, 2, 1]) / 6)


def test_rank_units_too_few_units():
    ranks = rank_units(spike_times, ripples.timestamps)
    assert isnan(ranks[:, 3]).all()

    ranks = rank_units(spike_times, ripples.timestamps, min_units=1)
    assert ranks[5, 3] == 1
    assert isnan(ranks[:5, 3]).all()


def test_rank_units_not_normalized():
    ranks = rank_units(spike_times, ripples.timestamps, normalize=False)
    assert_array_equal(ranks[:, 1], [1, 2, 3, 4, 5, 6])


def test_rank_order():
    median_rank = rank_order(ripples, spike_times)
    assert_array_almost_equal(median_rank, array([1, 2, 3, 4, 5, 6]) / 6)


def test_rank_order_restrict():
    median_rank = rank_order(ripples, spike_times, restrict=[[3.5, 5.5], ])
    assert_array_almost_equal(median_rank, array([6, 5, 4, 3, 2, 1]) / 6)


def test_rank_order_no_ripples():
    median_rank = rank_order(Ripples(), spike_times)
    assert median_rank.shape == (6, )
    assert isnan(median_rank).all()


def test_intersect_intervals():
    a = array([[0, 1], [2, 3], [4, 5]])
    b = array([[0.5, 2.5], [4.2, 4.8]])
    out = intersect_intervals(a, b)
    assert_array_equal(out, [[0.5, 1], [2, 2.5], [4.2, 4.8]])


def test_intersect_intervals_empty():
    out = intersect_intervals([[0, 1], ], [[2, 3], ])
    assert out.shape == (0, 2)
