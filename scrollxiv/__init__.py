"""ScrollXiv: arXiv feed with AI summaries and figures."""

__version__ = "0.1.0"
