"""Recipe Hub - consistency and query engine for a social recipe-sharing backend."""

__version__ = "0.1.0"
