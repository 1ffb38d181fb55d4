"""Configuration, logging and domain definitions."""
