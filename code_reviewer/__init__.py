"""
AI Code Reviewer

A backend service that reviews submitted source code with a large language
model and returns structured suggestions, improvements, security notes,
dependency notes and architecture notes, optionally persisting each review.
"""

__version__ = "1.0.0"
__author__ = "AI Code Reviewer Team"
