"""Shared helpers: image conversions and debug output."""
