"""Safety and rate limiting layer"""

from .cooldown_manager import CooldownManager

__all__ = [
    "CooldownManager",
]
