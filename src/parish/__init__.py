"""Parish - local-first daily practice engine."""

__version__ = "0.1.0"
