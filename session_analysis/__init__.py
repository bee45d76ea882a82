"""
Session analysis pipeline.

Runs every analysis stage for one recorded interaction session and returns
a single JSON-compatible SessionAnalysis record.
"""

from .pipeline import SessionAnalysis, analyze_session

__all__ = [
    'SessionAnalysis',
    'analyze_session',
]
