"""News aggregation across NewsAPI and The New York Times."""

__version__ = "0.1.0"
