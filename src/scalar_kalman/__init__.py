"""Public interface for the scalar Kalman filter package.

The package bundles the filter parameters, the recursive predict/correct
engine, a numba-compiled batch kernel, and a pandas front end for filtering
many independent channels at once.
"""

# Importing * is a bad practice and you should be punished for using it
__all__ = []
