"""Core streaming, transcript, and reasoning logic."""
