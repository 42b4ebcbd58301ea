"""Bitcoin anchoring of external blockchain checkpoints."""

__version__ = "0.1.0"
