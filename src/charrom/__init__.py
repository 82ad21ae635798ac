"""charrom - bitmap character ROM font toolkit."""

__version__ = "0.1.0"
