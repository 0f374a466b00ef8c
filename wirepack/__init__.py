"""Declarative, bit-precise packet layouts with views for reading and writing them in byte buffers."""

__version__ = "0.1.0"