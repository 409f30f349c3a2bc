"""Image loading and decoding."""
