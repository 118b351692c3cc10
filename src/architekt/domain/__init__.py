"""Domain layer: entity models, sanitization, and integrity rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, or config.
"""
