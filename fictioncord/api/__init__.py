"""HTTP API for Fictioncord."""
