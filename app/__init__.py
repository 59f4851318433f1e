"""Product Research Tracker"""

__version__ = "1.0.0"
