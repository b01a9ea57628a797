"""
Community Schema.

Declarative entity and relationship descriptors for the community data model,
consumed by an ent-style schema compiler.
"""

__version__ = "0.1.0"
