"""Zorvixe client payment and candidate onboarding backend."""

__version__ = "1.0.0"
