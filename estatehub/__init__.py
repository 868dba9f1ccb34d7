"""
EstateHub - real-estate listing API.
"""

__version__ = "1.0.0"
