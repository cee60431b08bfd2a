"""salesmapper - column-mapping detection for distributor sales reports."""

__version__ = "0.1.0"
