"""
Ad-blocking web performance benchmark package.

This package collects page-load metrics under different ad-blocking setups
(none, DNS-based, extension-based), averages repeated runs, and aggregates the
stored metrics into comparative report statistics.
"""

from .__version__ import __version__

__all__ = ["__version__"]
