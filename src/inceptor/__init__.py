"""
inceptor - run a code snippet in a single-use Lambda function.

A request carries a snippet of Python source. inceptor wraps it into a
deployable archive, reuses the host's own execution role, creates a
throwaway function under a random name, invokes it once, returns the
output and deletes the function in the background.
"""

__version__ = "0.1.0"
