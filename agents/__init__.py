"""Agent implementations for the teaching planner."""

from .classifier import SermonClassifierAgent

__all__ = ["SermonClassifierAgent"]
