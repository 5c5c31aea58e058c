"""
Follow Service - follow requests, privacy-gated profiles and notifications
"""

__version__ = "1.0.0"
