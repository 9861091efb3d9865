"""
Discussions search and mention notification app.
"""

__version__ = "0.1.0"
