"""Domain layer: data-store ports consumed by the worker services."""
