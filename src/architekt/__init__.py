"""architekt: validation and mutation engine for architecture models."""

__version__ = "0.4.0"
