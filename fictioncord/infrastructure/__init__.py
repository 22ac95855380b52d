"""Infrastructure layer: stores, stubs, observability and metrics."""
