"""
Shared utilities for the metrics pipeline.

Modules
-------
aggregation
    Averaging of repeated samples with missing data handling (skip, zero)
hostnames
    Registrable domain (eTLD+1) derivation
"""

__all__ = []
