"""Bootstrap wiring: build singletons from configuration."""
