"""Personalised Australian migration checklist and timeline planner."""

__version__ = "0.1.0"
