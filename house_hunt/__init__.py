"""
House Hunt: rental marketplace API with listings, search and admin moderation.
"""

__version__ = "1.0.0"
