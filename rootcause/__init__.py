"""rootcause: resolve production investigations to root causes and ticket them."""

__version__ = "0.1.0"
