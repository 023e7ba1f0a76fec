"""Document database backends and REST value translation.

The native and REST backends import their third-party clients lazily; use
``create_database`` or import ``bcup.firestore.native`` /
``bcup.firestore.rest`` directly.
"""

from .base import Document, DocumentDatabase, join_document, split_document
from .factory import create_database
from .memory import MemoryDatabase
from .tokens import AccessToken, ServiceAccountTokenProvider, StaticTokenProvider, TokenProvider
from .values import decode_fields, decode_value, encode_fields, encode_value

__all__ = [
    "Document",
    "DocumentDatabase",
    "split_document",
    "join_document",
    "MemoryDatabase",
    "create_database",
    "TokenProvider",
    "StaticTokenProvider",
    "ServiceAccountTokenProvider",
    "AccessToken",
    "decode_value",
    "decode_fields",
    "encode_value",
    "encode_fields",
]
