"""review-dojo: lessons learned from code review, ready for the next PR."""

__version__ = "2.0.0"
