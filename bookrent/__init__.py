"""
Book rental core.

Books with finite stock, users, and rental records that move through the
RENTED -> RETURNED / EXPIRED lifecycle.
"""

__version__ = "0.1.0"
