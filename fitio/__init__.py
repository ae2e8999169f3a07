__version__ = '0.1.0'
"""
Decode FIT activity files into sessions, laps and records.

"""
from fitio import fit
