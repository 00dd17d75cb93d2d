"""
bulletin-board: Client-side state for the Suggestions and Support bulletin board.

View-models for the board's tabs, filters, record lists, detail panel and
submission form, plus an async client for the remote bulletin service.
"""

__version__ = "0.1.0"
