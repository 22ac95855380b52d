"""
Fictioncord - turn-based collaborative storytelling for chat servers.

Participants enroll, submit and vote on a story prompt, then rotate
writing turns on a fixed timer until the session ends. The session
lifecycle is driven both by explicit commands and by a polling
scheduler that enforces phase deadlines.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
