"""edgescan - sportsbook vs prediction-market edge scanner."""

__version__ = "0.1.0"
