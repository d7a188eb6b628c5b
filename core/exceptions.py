"""Custom exceptions for the application."""

class SchemaGraphException(Exception):
    """Base exception for schema graph errors."""
    pass

class SourceUnavailableException(SchemaGraphException):
    """Exception raised when the schema source cannot be reached or returns no payload."""
    pass

class SchemaParseException(SchemaGraphException):
    """Exception raised when schema text cannot be parsed."""

    def __init__(self, dialect: str, message: str):
        self.dialect = dialect
        self.message = message
        super().__init__(f"Failed to parse {dialect} schema: {message}")

class IdentifierCollisionException(SchemaGraphException):
    """Exception raised when a generated identifier is already in use."""
    pass

class ValidationException(SchemaGraphException):
    """Exception raised when data validation fails."""
    pass

class StorageException(SchemaGraphException):
    """Exception raised when storage operations fail."""
    pass

class GraphNotFoundException(SchemaGraphException):
    """Exception raised when a graph does not exist in the store."""
    pass

class ImportInProgressException(SchemaGraphException):
    """Exception raised when a session already has an import in flight."""
    pass
