"""Package containing additional functions and classes, such as:
    - exceptions
    - simulate (functions to create fake recordings with ripples, for testing
      purposes)

"""
from .exceptions import (UnrecognizedFormat, InvalidParameter,
                         DegenerateSignal, MissingCollaboratorData)
from .simulate import create_data
