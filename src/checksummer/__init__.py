"""
Checksummer - detect silent data corruption by comparing file checksums
across runs.
"""

__version__ = "0.3.0"
