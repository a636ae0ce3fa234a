"""Adjacent Property Management blog: content pipeline and admin API."""

__version__ = "0.1.0"
