"""unichat: multi-instance chat aggregation over a WhatsApp gateway."""

__version__ = "0.1.0"
