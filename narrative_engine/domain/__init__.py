"""
Domain helpers shared across layers (serialization formats).
"""

from .serialization import StateEncoder, encode_history, decode_history, HISTORY_FORMAT

__all__ = [
    'StateEncoder',
    'encode_history',
    'decode_history',
    'HISTORY_FORMAT',
]
