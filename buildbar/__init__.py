"""buildbar - live terminal progress dashboard for build and fetch pipelines."""

__version__ = "0.1.0"
