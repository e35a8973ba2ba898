"""Concrete source plugins. Modules here register themselves on import."""
