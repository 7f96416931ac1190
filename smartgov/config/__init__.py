"""Configuration module.  Exports Settings.

There is no module-level instance: long-lived code receives a
Settings object through :class:`smartgov.context.DatabaseContext`.
"""

from smartgov.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
