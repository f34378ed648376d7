"""Domain layer: entities and comparison rules."""
