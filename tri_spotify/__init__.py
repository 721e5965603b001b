"""
tri-spotify: stores the best, medium and low quality variants of a Spotify
track under a content-addressed cache directory.
"""

__version__ = "0.3.0"
