"""Indicative company-incorporation fee and stamp duty calculator"""

__version__ = "0.1.0"
