"""Portfolio site backend with a cookie-authenticated admin area."""

__version__ = "0.1.0"
