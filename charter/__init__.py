"""Charter quote engine -- price private aircraft trips from operator knobs."""

__version__ = "0.1.0"
