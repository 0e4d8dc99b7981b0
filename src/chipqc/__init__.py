"""
chipqc: Quality-control testing for digital-microfluidic chips.

Moves liquid along a planned route across a chip's electrodes, reroutes
around electrodes that fail, and records a pass/fail result per channel.
"""

__version__ = "0.1.0"
