"""Evidence-tiered capability and context scoring engine."""

__version__ = "0.1.0"
