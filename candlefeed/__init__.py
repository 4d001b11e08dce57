"""
CandleFeed
==========
Serie de velas acotada que combina un snapshot histórico con un stream en vivo.
"""

__version__ = "0.3.0"
