"""
Error types for sparse vectors and numeric kernels.

Every failure here is a local, synchronous programmer error raised at the
call that broke the rule. Nothing is retried internally.
"""

from typing import Optional, Any, Dict


class VectorError(Exception):
    """
    Base exception for all weightvec errors.

    Carries an optional details dict for structured reporting.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize vector error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvariantViolation(VectorError, RuntimeError):
    """
    Raised when an internal invariant of a data structure would be broken.

    Covers shrinking capacity below the populated count and changing the
    populated count while a traversal is in progress.
    """

    def __init__(self, message: str,
                 operation: str = 'general',
                 expected_count: Optional[int] = None,
                 actual_count: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize invariant violation.

        Args:
            message: Error message
            operation: Operation that detected the violation ('resize', 'traverse', ...)
            expected_count: Populated count the operation relied on
            actual_count: Populated count actually observed
            details: Additional error context
        """
        super().__init__(message, details)
        self.operation = operation
        self.expected_count = expected_count
        self.actual_count = actual_count

        self.details.update({
            'operation': operation,
            'expected_count': expected_count,
            'actual_count': actual_count
        })


class PreconditionViolation(VectorError, ValueError):
    """
    Raised when a caller passes arguments an operation cannot accept.

    Examples: sampling from an empty distribution, a malformed snapshot,
    a non-positive gamma shape.
    """

    def __init__(self, message: str,
                 argument: Optional[str] = None,
                 value: Any = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize precondition violation.

        Args:
            message: Error message
            argument: Name of the offending argument
            value: Offending value, if small enough to report
            details: Additional error context
        """
        super().__init__(message, details)
        self.argument = argument
        self.value = value

        self.details.update({
            'argument': argument,
            'value': value
        })


def is_invariant_violation(error: Exception) -> bool:
    """Check if error is a broken data-structure invariant."""
    return isinstance(error, InvariantViolation)


def is_precondition_violation(error: Exception) -> bool:
    """Check if error is a rejected argument."""
    return isinstance(error, PreconditionViolation)


def is_traversal_mutation(error: Exception) -> bool:
    """Check if error is a structural mutation detected during a traversal."""
    return isinstance(error, InvariantViolation) and error.operation == 'traverse'
