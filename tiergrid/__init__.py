"""tiergrid - Praat TextGrid annotation model and codec."""

__version__ = '0.1.0'
