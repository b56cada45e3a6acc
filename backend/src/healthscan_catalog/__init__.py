"""HealthScan catalog data-quality backend."""

__version__ = "0.1.0"
