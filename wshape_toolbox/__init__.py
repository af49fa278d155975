"""W-shape section properties and Lr toolbox."""

__version__ = "0.1.0"
