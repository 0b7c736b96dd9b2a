"""Vector and matrix math, seeded randomness, input state and model loading for a small game engine."""

__version__ = "0.1.0"
__all__ = ["vector", "transform", "geometry", "rng", "input", "model"]