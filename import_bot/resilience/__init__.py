"""Diagnostics and human-in-the-loop waits."""

from .diagnostics import DiagnosticCapture
from .intervention import InterventionCoordinator, InterventionSession, is_authenticated_url

__all__ = [
    "DiagnosticCapture",
    "InterventionCoordinator",
    "InterventionSession",
    "is_authenticated_url",
]
