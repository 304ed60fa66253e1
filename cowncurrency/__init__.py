"""Concurrency building blocks: cowns, a cache, a thread pool, reference counting, stacks, growable arrays, hazard pointers and a small caching server."""

__version__ = "0.1.0"