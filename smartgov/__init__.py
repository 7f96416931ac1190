"""SmartGov data layer.

Transactional CRUD repositories, a TTL summary cache, an agent-processing
audit log, and versioned schema migrations for the SmartGov feedback-intake
backend.
"""

__version__ = "0.1.0"
