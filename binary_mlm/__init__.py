"""
binary_mlm - binary multi-level-marketing compensation engine.

Binary tree placement, volume propagation, cycle commissions with
daily/weekly capping, and cached tree snapshots.
"""

__version__ = "1.0.0"
