"""
Matching Domain

Scores mentee/mentor fit, stores ranked matches and explains them.
"""

from .router import mentors_router, router

__all__ = ["router", "mentors_router"]
