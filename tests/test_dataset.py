from numpy import isnan, rint
from numpy.testing import assert_array_equal
from pytest import raises

from ripplefind import Dataset
from ripplefind.dataset import detect_format
from ripplefind.ioeeg import Lfp, write_lfp
from ripplefind.utils import UnrecognizedFormat, create_data

from .paths import EXPORTED_PATH, nosession_lfp_file

data = create_data(n_chan=4, time=(0, 2), bursts=[(500, 560), ],
                   amplitude=100, noise=50, seed=0)
write_lfp(data, nosession_lfp_file)
d = Dataset(nosession_lfp_file, n_chan=4, s_freq=1250)
n_smp = len(data.axis['time'][0])


def test_detect_format():
    assert detect_format(nosession_lfp_file) == Lfp
    assert detect_format(EXPORTED_PATH / 'session.EEG') == Lfp

    with raises(UnrecognizedFormat):
        detect_format(EXPORTED_PATH / 'session.edf')


def test_dataset_no_header():
    with raises(TypeError):
        Dataset(nosession_lfp_file)


def test_dataset_header():
    assert d.header['subj_id'] == 'rat02_day1'
    assert d.header['s_freq'] == 1250
    assert d.header['n_samples'] == n_smp
    assert d.header['chan_name'] == ['chan000', 'chan001', 'chan002',
                                     'chan003']


def test_dataset_read_all():
    read = d.read_data()
    assert read.data[0].shape == (4, n_smp)
    assert_array_equal(read.data[0], rint(data.data[0]))


def test_dataset_read_chan():
    read = d.read_data(chan=['chan002', ], begsam=100, endsam=200)
    assert read.data[0].shape == (1, 100)
    assert read.axis['time'][0][0] == 100 / 1250
    assert_array_equal(read.data[0][0], rint(data.data[0][2, 100:200]))


def test_dataset_chan_not_list():
    with raises(TypeError):
        d.read_data(chan='chan002')


def test_dataset_read_end():
    read = d.read_data(begsam=1250)
    assert read.number_of('trial') == 1
    assert read.data[0].shape == (4, n_smp - 1250)
    assert read.axis['time'][0][0] == 1


def test_dataset_read_outside():
    read = d.read_data(begsam=-10, endsam=10)
    assert isnan(read.data[0][:, :10]).all()
    assert not isnan(read.data[0][:, 10:]).any()

    read = d.read_data(begsam=n_smp - 10, endsam=n_smp + 10)
    assert isnan(read.data[0][:, 10:]).all()


def test_write_lfp_empty():
    empty_file = EXPORTED_PATH / 'empty.lfp'
    write_lfp(create_data(n_chan=2, time=(0, 0)), empty_file)
    d_empty = Dataset(empty_file, n_chan=2, s_freq=1250)
    assert d_empty.header['n_samples'] == 0
    assert d_empty.read_data().data[0].shape == (2, 0)
