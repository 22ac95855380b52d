"""Domain layer: session model, pure transitions and errors."""
