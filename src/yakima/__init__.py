"""
Yakima - stream a local music directory to an Icecast server
"""

__version__ = "0.1.0"
