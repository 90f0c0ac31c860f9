"""HTTP surface for the UI layer.

Catalog endpoints always answer with a normalized model (live, stale or
static). Quote, session and checkout endpoints surface typed errors as
``{error, category, detail}`` with a matching HTTP status.
"""

__all__ = [
    "app",
    "controllers",
]
