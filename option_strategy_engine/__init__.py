"""Option pricing, expected-value analytics and strategy break-even engine."""

__version__ = "0.1.0"
