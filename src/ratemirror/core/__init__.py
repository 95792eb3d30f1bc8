"""Core domain: error taxonomy, configuration, logging and constants."""
