"""
Gemini PR Reviewer

Reviews GitHub pull requests with Gemini when a trigger comment is posted,
publishing inline comments and a summary review.
"""

__version__ = "1.0.0"

from .config import AppConfig
from .review.orchestrator import ReviewDependencies, ReviewOrchestrator

__all__ = ["AppConfig", "ReviewDependencies", "ReviewOrchestrator"]
