from numpy import array, empty, isnan, nan, ones, zeros
from numpy.testing import assert_array_equal
from pytest import approx, raises

from ripplefind import DetectRipple, SeriesSource
from ripplefind.detect.ripple import (above_band_threshold, detect_crossings,
                                      in_intervals, merge_close,
                                      negative_peaks, normalize_power,
                                      peak_threshold, reject_emg,
                                      reject_noise, within_duration)
from ripplefind.graphoelement import Ripple, Ripples, STAGES
from ripplefind.trans import Emg
from ripplefind.utils import create_data
from ripplefind.utils.exceptions import DegenerateSignal, InvalidParameter

S_FREQ = 1250


def _source(data, chan=0, **kwargs):
    return SeriesSource(data.data[0][chan], data.axis['time'][0], **kwargs)


one_burst = create_data(bursts=[(500, 560), ])
two_bursts = create_data(bursts=[(500, 560), (570, 620)])

# ten seconds, with background noise and three ripples
noisy = create_data(time=(0, 10), bursts=[(2000, 2060), (5000, 5080),
                                          (9000, 9050)],
                    noise=1, seed=0)


def _check_order(ripples):
    for one_ripple in ripples.events + ripples.noise:
        assert one_ripple.start < one_ripple.peak < one_ripple.end


def test_detect_ripple_repr():
    detrip = DetectRipple()
    assert repr(detrip) == 'detrip_130-200Hz_2.0-5.0sd'

    detrip = DetectRipple(absolute_thresholds=True)
    assert repr(detrip) == 'detrip_130-200Hz_2.0-5.0abs'


def test_detect_ripple_invalid():
    with raises(InvalidParameter):
        DetectRipple(thresholds=(5, 2))

    with raises(InvalidParameter):
        DetectRipple(window=10)

    with raises(InvalidParameter):
        DetectRipple(durations=(-1, 150))

    with raises(InvalidParameter):
        DetectRipple(durations=(20, 0))

    with raises(InvalidParameter):
        DetectRipple(min_duration=200, durations=(20, 150))

    with raises(InvalidParameter):
        DetectRipple(passband=(200, 130))

    with raises(InvalidParameter):
        DetectRipple(emg_thresh=1.5)

    with raises(InvalidParameter):
        DetectRipple(stdev=0)

    with raises(InvalidParameter):
        DetectRipple(restrict=[[10, 5], ])


def test_detect_ripple_invalid_is_value_error():
    with raises(ValueError):
        DetectRipple(thresholds=(5, 2))


def test_detect_ripple_one_burst():
    detrip = DetectRipple(stdev=1.0)
    ripples = detrip(_source(one_burst))

    assert len(ripples) == 1
    assert len(ripples.noise) == 0
    rip = ripples.events[0]
    assert rip.start == approx(500 / S_FREQ, abs=0.02)
    assert rip.end == approx(560 / S_FREQ, abs=0.02)
    assert rip.start < rip.peak < rip.end
    assert rip.peak_power > 5
    assert ripples.stdev == 1.0


def test_detect_ripple_processing_steps():
    detrip = DetectRipple(stdev=1.0)
    ripples = detrip(_source(one_burst))

    assert list(ripples.processing_steps) == list(STAGES)
    assert ripples.processing_steps['detection'] >= 1
    assert ripples.processing_steps['peak_threshold'] == 1
    assert ripples.processing_steps['duration'] == 1
    assert ripples.processing_steps['noise'] == 1
    assert ripples.processing_steps['emg'] == 1


def test_detect_ripple_detector_info():
    detrip = DetectRipple(stdev=1.0)
    ripples = detrip(_source(one_burst))

    info = ripples.detector_info
    assert info['detector_name'] == 'ripplefind.DetectRipple'
    assert info['detection_channel'] is None
    assert info['noise_channel'] is None
    assert info['detection_intervals'] is None
    assert info['detection_params']['thresholds'] == [2, 5]
    assert info['detection_params']['stdev'] == 1.0


def test_detect_ripple_merge():
    detrip = DetectRipple(stdev=1.0, durations=(30, 150))
    ripples = detrip(_source(two_bursts))

    assert len(ripples) == 1
    rip = ripples.events[0]
    assert rip.start == approx(500 / S_FREQ, abs=0.02)
    assert rip.end == approx(620 / S_FREQ, abs=0.02)


def test_detect_ripple_noise_channel():
    detrip = DetectRipple(stdev=1.0)
    dat = one_burst.data[0][0]
    ripples = detrip(_source(one_burst), noise=dat.copy())

    assert len(ripples) == 0
    assert len(ripples.noise) == 1
    assert ripples.processing_steps['duration'] == 1
    assert ripples.processing_steps['noise'] == 0
    assert ripples.detector_info['noise_channel'] == 'series'
    _check_order(ripples)


def test_detect_ripple_clean_noise_channel():
    detrip = DetectRipple(stdev=1.0)
    ripples = detrip(_source(one_burst), noise=zeros(1250))

    assert len(ripples) == 1
    assert len(ripples.noise) == 0
    assert ripples.detector_info['noise_channel'] is not None


def test_detect_ripple_noise_as_chantime():
    detrip = DetectRipple(stdev=1.0)
    ripples = detrip(_source(one_burst), noise=one_burst)
    assert len(ripples.noise) == 1
    assert ripples.detector_info['noise_channel'] == 'chan00'


def test_detect_ripple_noise_channel_without_session():
    detrip = DetectRipple(stdev=1.0)
    with raises(FileNotFoundError):
        detrip(_source(one_burst), noise=3)


def test_detect_ripple_empty():
    detrip = DetectRipple()
    ripples = detrip(SeriesSource(empty(0), s_freq=S_FREQ))

    assert len(ripples) == 0
    assert len(ripples.noise) == 0
    assert all(x == 0 for x in ripples.processing_steps.values())
    assert isnan(ripples.stdev)


def test_detect_ripple_nothing_above_threshold():
    detrip = DetectRipple()
    quiet = create_data(time=(0, 2), noise=1, seed=1)
    ripples = detrip(_source(quiet),
                     noise=zeros(len(quiet.axis['time'][0])))
    assert ripples.processing_steps['emg'] == len(ripples)
    assert ripples.detector_info['noise_channel'] == 'series'


def test_detect_ripple_degenerate():
    detrip = DetectRipple()
    with raises(DegenerateSignal):
        detrip(SeriesSource(zeros(1250), s_freq=S_FREQ))


def test_detect_ripple_degenerate_is_arithmetic_error():
    detrip = DetectRipple()
    with raises(ArithmeticError):
        detrip(SeriesSource(zeros(1250), s_freq=S_FREQ))


def test_detect_ripple_flat_channel():
    for offset in (100, -312, 2048):
        with raises(DegenerateSignal):
            DetectRipple(emg_thresh=None)(
                SeriesSource(ones(12500) * offset, s_freq=S_FREQ))

    # prior stdev does not make a dead channel usable
    with raises(DegenerateSignal):
        DetectRipple(stdev=1.0)(SeriesSource(ones(1250) * 7, s_freq=S_FREQ))

    # padding outside the recordings is ignored
    flat = ones(1250) * 100
    flat[:10] = nan
    with raises(DegenerateSignal):
        DetectRipple()(SeriesSource(flat, s_freq=S_FREQ))


def test_detect_ripple_flat_channel_absolute():
    detrip = DetectRipple(absolute_thresholds=True)
    ripples = detrip(SeriesSource(ones(1250) * 100, s_freq=S_FREQ))
    assert len(ripples) == 0


def test_detect_ripple_noisy():
    detrip = DetectRipple()
    ripples = detrip(_source(noisy))

    assert len(ripples) == 3
    assert ripples.stdev > 0
    assert ripples.timestamps[:, 0] == approx([1.6, 4, 7.2], abs=0.02)
    _check_order(ripples)


def test_detect_ripple_idempotent():
    detrip = DetectRipple(stdev=2.0)
    ripples0 = detrip(_source(noisy))
    ripples1 = detrip(_source(noisy))
    assert_array_equal(ripples0.timestamps, ripples1.timestamps)
    assert_array_equal(ripples0.peaks, ripples1.peaks)


def test_detect_ripple_monotonic_high_threshold():
    n_events = []
    for high in (3, 5, 8, 20, 100):
        detrip = DetectRipple(thresholds=(2, high))
        n_events.append(len(detrip(_source(noisy))))

    assert all(x >= y for x, y in zip(n_events[:-1], n_events[1:]))


def test_detect_ripple_monotonic_low_threshold():
    n_candidates = []
    for low in (1, 2, 3, 4):
        detrip = DetectRipple(thresholds=(low, 5))
        ripples = detrip(_source(noisy))
        n_candidates.append(ripples.processing_steps['detection'])

    assert all(x >= y for x, y in zip(n_candidates[:-1], n_candidates[1:]))


def test_detect_ripple_duration_too_short():
    detrip = DetectRipple(stdev=1.0, min_duration=100, durations=(20, 150))
    ripples = detrip(_source(one_burst))
    assert len(ripples) == 0
    assert ripples.processing_steps['peak_threshold'] == 1
    assert ripples.processing_steps['duration'] == 0


def test_detect_ripple_duration_too_long():
    detrip = DetectRipple(stdev=1.0, min_duration=None, durations=(20, 10))
    ripples = detrip(_source(one_burst))
    assert len(ripples) == 0


def test_detect_ripple_no_max_duration():
    detrip = DetectRipple(stdev=1.0, durations=(20, None))
    assert len(detrip(_source(one_burst))) == 1


def test_detect_ripple_restrict():
    detrip = DetectRipple(thresholds=(2, 4), restrict=[[0, 4.5], ])
    ripples = detrip(_source(noisy))
    assert len(ripples) >= 2
    assert ripples.detector_info['detection_intervals'] == [[0., 4.5]]

    detrip = DetectRipple(restrict=[[20, 30], ])
    with raises(DegenerateSignal):
        detrip(_source(noisy))


def test_detect_ripple_absolute():
    detrip = DetectRipple(thresholds=(1, 4), absolute_thresholds=True)
    assert detrip.above_band

    ripples = detrip(_source(one_burst))
    assert len(ripples) == 1
    assert isnan(ripples.stdev)
    assert ripples.events[0].peak_power > 16


def test_detect_ripple_above_band():
    detrip = DetectRipple(stdev=1.0, above_band=True)
    assert len(detrip(_source(one_burst))) == 1

    # broadband artifact: oscillation above the ripple band
    artifact = create_data(bursts=[(500, 560), ], sine_freq=300,
                           amplitude=200)
    assert len(detrip(_source(artifact))) == 0


def test_detect_ripple_emg():
    emg_time = array([0, 0.2, 0.4, 0.6, 0.8])

    detrip = DetectRipple(stdev=1.0)
    high = Emg(emg_time, array([0, 0, 0.95, 0, 0]))
    ripples = detrip(_source(one_burst), emg=high)
    assert len(ripples) == 0
    assert len(ripples.noise) == 1
    assert ripples.processing_steps['emg'] == 0

    low = Emg(emg_time, array([0, 0, 0.5, 0, 0]))
    ripples = detrip(_source(one_burst, emg=low))
    assert len(ripples) == 1


def test_detect_ripple_emg_disabled():
    emg = Emg(array([0, 0.4, 0.8]), array([1, 1, 1]))
    detrip = DetectRipple(stdev=1.0, emg_thresh=0)
    assert len(detrip(_source(one_burst), emg=emg)) == 1


def test_detect_ripple_persist(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    detrip = DetectRipple(stdev=1.0, persist=True)
    ripples = detrip(_source(one_burst))

    saved = tmp_path / (tmp_path.name + '.ripples.events.json')
    assert saved.exists()
    loaded = Ripples.load(saved)
    assert loaded.events == ripples.events


def test_normalize_power():
    power = array([1., 2, 3, 4, 5])
    nss, stdev = normalize_power(power)
    assert stdev == approx(power.std(ddof=1))
    assert nss.mean() == approx(0)

    nss, stdev = normalize_power(power, stdev=2)
    assert stdev == 2
    assert_array_equal(nss, (power - 3) / 2)

    keep = array([True, True, True, False, False])
    nss, stdev = normalize_power(power, keep=keep)
    assert stdev == approx(1)
    assert nss[1] == approx(0)


def test_normalize_power_degenerate():
    with raises(DegenerateSignal):
        normalize_power(zeros(10))

    with raises(DegenerateSignal):
        normalize_power(array([1.]))

    with raises(DegenerateSignal):
        normalize_power(array([1., 2]), keep=array([False, False]))


def test_detect_crossings():
    dat = array([0, 3, 3, 0, 0, 3, 0, 3, 3])
    assert_array_equal(detect_crossings(dat, 2), [[1, 2], [5, 5]])

    # starts above threshold
    dat = array([3, 3, 0, 3, 0])
    assert_array_equal(detect_crossings(dat, 2), [[3, 3]])

    # starts and ends above threshold
    dat = array([3, 3, 0, 0, 3, 3, 0, 3.])
    assert_array_equal(detect_crossings(dat, 2), [[4, 5]])

    # above threshold everywhere
    assert detect_crossings(array([3, 3, 3]), 2).shape == (0, 2)
    assert detect_crossings(array([]), 2).shape == (0, 2)


def test_merge_close_boundary():
    GAP = 25
    events = array([[100, 200], [200 + GAP - 1, 300]])
    assert_array_equal(merge_close(events, GAP), [[100, 300]])

    events = array([[100, 200], [200 + GAP, 300]])
    assert_array_equal(merge_close(events, GAP), events)


def test_merge_close_chain():
    events = array([[0, 10], [15, 20], [25, 30], [100, 110]])
    assert_array_equal(merge_close(events, 10), [[0, 30], [100, 110]])
    assert merge_close(empty((0, 2), dtype=int), 10).shape == (0, 2)


def test_peak_threshold():
    dat = array([0, 3, 6, 3, 0, 3, 4, 0.])
    events = array([[1, 3], [5, 6]])
    kept, peak_power = peak_threshold(dat, events, 5)
    assert_array_equal(kept, [[1, 3]])
    assert_array_equal(peak_power, [6])


def test_above_band_threshold():
    power = array([0, 5, 5, 5, 0, 5, 5, 5, 0.])
    power_above = array([0, 1, 1, 1, 0, 9, 9, 9, 0.])
    events = array([[1, 3], [5, 7]])
    kept, peak_power = above_band_threshold(power, power_above, events,
                                            array([6., 7]))
    assert_array_equal(kept, [[1, 3]])
    assert_array_equal(peak_power, [6])


def test_negative_peaks():
    dat = array([-9, 0, -1, -3, 0, -9, 0, 0, -9.])
    events = array([[0, 4], [5, 6], [6, 8]])
    troughs, peak_power = negative_peaks(dat, events, array([6., 7, 8]))
    assert_array_equal(troughs, [[0, 3, 4], [6, 7, 8]])
    assert_array_equal(peak_power, [6, 8])

    troughs, peak_power = negative_peaks(dat, empty((0, 2), dtype=int),
                                         empty(0))
    assert troughs.shape == (0, 3)


def test_within_duration_boundary():
    ripples = [Ripple(0., 0.01, 0.02, 6),
               Ripple(1., 1.01, 1.019, 6),
               Ripple(0., 0.05, 0.1, 6),
               Ripple(3., 3.05, 3.100001, 6),
               ]
    kept, too_long, too_short = within_duration(ripples, 0.02, 0.1)
    assert kept == [ripples[0], ripples[2]]
    assert too_short == [ripples[1], ]
    assert too_long == [ripples[3], ]


def test_within_duration_no_limits():
    ripples = [Ripple(0., 0.5, 1000., 6), ]
    assert within_duration(ripples)[0] == ripples


def test_within_duration_nan():
    with raises(ValueError):
        within_duration([Ripple(float('nan'), 0, 1, 6), ], 0.02, 0.1)


def test_reject_noise():
    time = array([0, 1, 2, 3, 4, 5, 6, 7, 8, 9.])
    dat = array([0, 0, 9, 0, 0, 0, 0, 9, 0, 0.])
    ripples = [Ripple(1, 1.5, 2, 6),
               Ripple(4, 4.5, 5, 6),
               Ripple(6.5, 7, 7.5, 6),
               Ripple(8, 8.5, 9, 6),
               ]
    kept, rejected = reject_noise(ripples, dat, time, 5)
    assert kept == [ripples[1], ripples[3]]
    assert rejected == [ripples[0], ripples[2]]


def test_reject_emg():
    emg = Emg(array([0, 1, 2, 3.]), array([0, 0.95, 0, 0.95]))
    ripples = [Ripple(0.9, 1, 1.1, 6),
               Ripple(1.6, 1.7, 1.8, 6),
               Ripple(2.4, 2.5, 2.6, 6),
               ]
    kept, rejected = reject_emg(ripples, emg, 0.9)
    assert kept == [ripples[1], ripples[2]]
    assert rejected == [ripples[0], ]

    kept, rejected = reject_emg(ripples, Emg(empty(0), empty(0)), 0.9)
    assert kept == ripples
    assert rejected == []


def test_in_intervals():
    time = array([0, 1, 2, 3, 4, 5.])
    assert_array_equal(in_intervals(time, [[1, 2], [4, 4]]),
                       [False, True, True, False, True, False])
    assert not in_intervals(time, empty((0, 2))).any()
