"""Orbit — keeps an unbounded list of things in view by surfacing only the few that matter now.

Items are re-ranked against a context snapshot (time, place, device) using
learned interaction histograms, recency, frequency, pins, novelty and decay.
"""

__version__ = "1.0.0"
