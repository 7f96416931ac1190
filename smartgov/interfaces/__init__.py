"""Public interface definitions for external collaborators.

IConnectionSource
    Pooled connection contract consumed by the query executor.
"""

from smartgov.interfaces.connection_source import IConnectionSource

__all__ = ["IConnectionSource"]
