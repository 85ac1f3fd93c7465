"""
Horumarin Post Service - posts, ranked feeds and cursor pagination
"""
__version__ = "1.0.0"
