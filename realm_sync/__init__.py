"""
Realm Sync - hierarchy import/export service.

Keeps a declarative realm chart (Supreme Entity -> Sovereign Branches -> team-like
divisions -> Entities) in sync with GitHub organizations, teams and repositories.
"""

__version__ = "1.0.0"
