"""stock-dashboard: historical price charts and a naive close prediction."""

__version__ = "0.1.0"
