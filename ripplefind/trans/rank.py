"""Rank order of the units during the ripples.

For each ripple, the units which fire are ranked by the time of their first
spike. The median rank of a unit across ripples tells whether it tends to
fire early or late in the sequence.
"""
from logging import getLogger

from numpy import (asarray, argsort, empty, isnan, maximum, minimum, nan,
                   nanmedian, searchsorted, vstack)

lg = getLogger(__name__)

MIN_UNITS = 5


def rank_units(spike_times, intervals, min_units=MIN_UNITS, normalize=True):
    """Rank the units by their first spike in each event.

    Parameters
    ----------
    spike_times : list of ndarray
        for each unit, sorted vector with spike times, in s
    intervals : ndarray
        N x 2 matrix with start and end time of each event, in s
    min_units : int
        events with fewer active units are not ranked (all NaN)
    normalize : bool
        if True, the ranks are divided by the number of active units, so that
        they are between 0 and 1

    Returns
    -------
    ndarray
        units X events matrix with the rank (NaN if the unit does not fire)
    """
    intervals = asarray(intervals, dtype=float).reshape(-1, 2)
    ranks = empty((len(spike_times), intervals.shape[0]))
    ranks.fill(nan)

    for i_evt, (start, end) in enumerate(intervals):
        units = []
        first_spikes = []
        for i_unit, spikes in enumerate(spike_times):
            i_first = searchsorted(spikes, start, side='left')
            if i_first < len(spikes) and spikes[i_first] <= end:
                units.append(i_unit)
                first_spikes.append(spikes[i_first])

        n_units = len(units)
        if n_units < min_units:
            continue

        # stable, so units spiking at the same time keep their order
        order = argsort(first_spikes, kind='stable')
        for rank, i in enumerate(order, start=1):
            ranks[units[i], i_evt] = rank / n_units if normalize else rank

    lg.debug('{} of {} events had enough units to rank'.format(
        (~isnan(ranks).all(axis=0)).sum(), intervals.shape[0]))
    return ranks


def rank_order(ripples, spike_times, restrict=None, min_units=MIN_UNITS,
               normalize=True):
    """Median rank of each unit across the accepted ripples.

    Parameters
    ----------
    ripples : instance of Ripples
        detected ripples (only the accepted ones are used)
    spike_times : list of ndarray
        for each unit, sorted vector with spike times, in s
    restrict : ndarray, optional
        N x 2 matrix with epochs (for example one sleep stage), in s. Ripples
        are intersected with these epochs.
    min_units : int
        events with fewer active units are not ranked
    normalize : bool
        normalize ranks between 0 and 1

    Returns
    -------
    ndarray
        vector with the median rank for each unit (NaN if it never fired in a
        ranked event)
    """
    intervals = ripples.timestamps
    if restrict is not None:
        intervals = intersect_intervals(intervals, restrict)

    ranks = rank_units(spike_times, intervals, min_units=min_units,
                       normalize=normalize)

    output = empty(ranks.shape[0])
    output.fill(nan)
    for i, unit_ranks in enumerate(ranks):
        if not isnan(unit_ranks).all():
            output[i] = nanmedian(unit_ranks)

    return output


def intersect_intervals(a, b):
    """Intersection of two sets of intervals.

    Parameters
    ----------
    a, b : ndarray
        N x 2 matrices with start and end of each interval. Intervals within
        each set should not overlap.

    Returns
    -------
    ndarray
        M x 2 matrix with the parts of a which are also in b, sorted by start
    """
    a = asarray(a, dtype=float).reshape(-1, 2)
    b = asarray(b, dtype=float).reshape(-1, 2)

    out = []
    for one_b in b:
        start = maximum(a[:, 0], one_b[0])
        end = minimum(a[:, 1], one_b[1])
        overlap = start < end
        out.append(vstack((start[overlap], end[overlap])).T)

    if not out:
        return empty((0, 2))

    out = vstack(out)
    return out[argsort(out[:, 0], kind='stable')]
