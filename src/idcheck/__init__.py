"""
idcheck: paced, concurrent validation of identifier lists.

Feeds large lists of identifiers through a fixed pool of workers that
query a rate-limited verification service, producing exactly one
outcome per identifier.
"""

__version__ = "0.1.0"
