"""Core layer: validation, coercion, projection and the DTO classes."""
