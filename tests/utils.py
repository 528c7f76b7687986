from ripplefind.attr import Session
from ripplefind.ioeeg import write_lfp
from ripplefind.utils import create_data

from .paths import SESSION_PATH, lfp_file

BURSTS = [(2000, 2060), (5000, 5080), (9000, 9050)]


def write_session():
    """Session with four channels: ripples on the first one, the second one
    is the noise channel."""
    data = create_data(n_chan=4, time=(0, 10), amplitude=100, noise=10,
                       seed=0)
    ripples = create_data(n_chan=1, time=(0, 10), bursts=BURSTS,
                          amplitude=100)
    data.data[0][0] += ripples.data[0][0]
    write_lfp(data, lfp_file)

    session = Session('rat01_day1', SESSION_PATH, 4, 1250,
                      ripple_channels=[0, ], noise_channel=1)
    session.to_json()
    return session
