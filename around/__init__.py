"""around: location-aware check-in service"""

__version__ = "1.0.0"
