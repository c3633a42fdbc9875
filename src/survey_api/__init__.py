"""
Survey authoring and response collection backend.
"""

__version__ = "0.1.0"
