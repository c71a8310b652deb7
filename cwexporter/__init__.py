"""Job model, metric-to-resource association and concurrent job scraping for a CloudWatch metrics exporter."""

__version__ = "0.1.0"
__all__ = ["associator", "logging", "model", "scraper", "static"]