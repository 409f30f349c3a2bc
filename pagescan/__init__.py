"""Locate, flatten and binarize document pages in photographs."""

__version__ = "0.1.0"
