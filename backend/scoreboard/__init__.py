"""Scoreboard: live leaderboard dashboard for service advisors and technicians."""

__version__ = "0.1.0"
__author__ = "Scoreboard Team"

__all__ = ["__version__", "__author__"]
