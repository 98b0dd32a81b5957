"""Shared error code constants.

These constants are stable machine-readable codes for structured error
output from audit tooling.
"""

# Validation
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID_ARGUMENT = "INVALID_ARGUMENT"
INVALID_MAPPING = "INVALID_MAPPING"

# Not found
NOT_FOUND = "NOT_FOUND"
NO_SESSION = "NO_SESSION"

# Dependency / external system
DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"
CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"

# Internal
INTERNAL_ERROR = "INTERNAL_ERROR"
UNEXPECTED_EXCEPTION = "UNEXPECTED_EXCEPTION"
