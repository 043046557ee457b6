"""
samaj — Community membership service (verification & access gating).
"""

__version__ = "1.0.0"
