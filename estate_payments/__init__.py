# estate_payments/__init__.py
"""Payment schedule and instalment engine for real-estate transactions."""

__version__ = "0.1.0"
