"""
trackgrade

Scores audio-mix feature vectors against genre benchmarks and tracks
quality, consistency and sonic identity across an artist's catalog.
"""

__version__ = "1.0.0"
__author__ = "trackgrade developers"
