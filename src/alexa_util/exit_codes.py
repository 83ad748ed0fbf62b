"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a failure category and is referenced by the
corresponding :class:`~alexa_util.exceptions.AlexaUtilError` subclass.
Shell wrappers can inspect the exit code to tell "try again later" apart
from "start over" without parsing stderr.

Example::

    $ alexa-util auth login dev
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the device authorization did not complete
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authorization failed, or the profile holds no usable credential."""

EXIT_NOT_FOUND = 4
"""A profile or remote resource was not found."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP error status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CONTRACT_VIOLATION = 8
"""The authorization server answered with a response matching no known shape."""

EXIT_STORE_ERROR = 9
"""The credential store could not be read, parsed, or written."""
