"""
Proto Mirror — Keep a local copy of upstream protocol-buffer definitions.
"""

__version__ = "0.1.0"
