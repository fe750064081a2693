"""
osmplot: static maps of OpenStreetMap data, with highlighted regions enclosed
by named highways.
"""

__version__ = '0.1.0'
