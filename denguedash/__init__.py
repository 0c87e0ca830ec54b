"""DENGUE-DASH: dengue surveillance aggregation backend."""

__version__ = "0.1.0"
