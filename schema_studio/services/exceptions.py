"""
Service Layer Exceptions

Request-level failures raised by the services and translated to HTTP
responses by the API layer. Per-operation failures are never exceptions; they
are OperationResults with an error status.
"""


class WorkspaceNotFoundError(Exception):
    """Raised when a session ID does not match any live workspace."""
    pass


class IntrospectionError(Exception):
    """Raised when the database could not be read."""
    pass


class InvalidConnectionStringError(IntrospectionError):
    """Raised for connection strings that are not Postgres URLs."""
    pass


class EmptySchemaError(IntrospectionError):
    """Raised when the database has no user tables or views."""
    pass


class AssistantUnavailableError(Exception):
    """Raised when no LLM provider is configured."""
    pass
