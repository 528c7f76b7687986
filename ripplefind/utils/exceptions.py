"""Module contains all the exceptions

"""

class UnrecognizedFormat(Exception):
    """Could not recognize the format of the file with the recordings.

    """
    def __init__(self, value):
        self.value = value

    def __str__(self):
        return repr(self.value)


class InvalidParameter(ValueError):
    """One of the detection parameters is malformed (even smoothing window,
    thresholds in the wrong order, negative durations).

    """
    def __init__(self, value):
        self.value = value

    def __str__(self):
        return repr(self.value)


class DegenerateSignal(ArithmeticError):
    """The signal has no variance, so it cannot be normalized.

    """
    def __init__(self, value):
        self.value = value

    def __str__(self):
        return repr(self.value)


class MissingCollaboratorData(FileNotFoundError):
    """Data needed by the detector (noise channel, EMG, session file) could not
    be found or read.

    """
    def __init__(self, value):
        self.value = value

    def __str__(self):
        return repr(self.value)
