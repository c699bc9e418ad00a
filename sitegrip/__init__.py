"""SiteGrip indexing status reconciliation toolkit."""

__version__ = "0.3.0"
