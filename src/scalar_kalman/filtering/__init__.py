"""Filtering routines for scalar measurement streams.

Modules cover the pure-Python predict/correct engine, a JIT-compiled array
kernel for long signals, and per-channel filtering of long-format DataFrames.
"""

# Importing * is a bad practice and you should be punished for using it
__all__: list[str] = []
