"""Session engine: models, errors, registry, profiles and lifecycle."""
