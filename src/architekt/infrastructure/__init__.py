"""Infrastructure layer: persistence backends."""
