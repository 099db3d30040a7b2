"""Version information for :mod:`wbprop`."""

__all__ = ["VERSION"]

VERSION = "0.1.0"
