"""Posterior summaries for QLD sampling results."""

from .summary import PosteriorSummary, summarize_samples, format_summary

__all__ = [
    "PosteriorSummary",
    "summarize_samples",
    "format_summary",
]
