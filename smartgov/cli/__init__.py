"""Command-line tools for the SmartGov data layer."""
