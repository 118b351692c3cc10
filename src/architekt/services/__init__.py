"""Service layer: load, clone, mutate, validate, save.

Services may import from domain and infrastructure layers.
They must never import from config.
"""
