"""
spotlightdl Decorators

Decorators shared by the command line entry point. 'catch_errors' turns any exception
that escapes a command into a formatted failure message on stderr and a non-zero exit code.
This is how fatal conditions (the output directory cannot be created, the Spotlight API
cannot be reached or returns garbage) end the run.
"""

import sys
from functools import wraps

from spotlightdl.cli_utils.console import fail


def catch_errors(func):
    """
    Catch and format errors with the "fail" console template and gracefully
    exit the application with an error code.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as error:
            fail(str(error))
            sys.exit(1)

    return wrapper
