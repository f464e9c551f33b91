"""Custom exception classes for the governance framework.

Every error raised by the policy registry, evaluator, configuration layer or
Snowflake provisioner derives from GovernanceError. All of them are local,
synchronous validation errors; none are transient, so callers should not
retry them.
"""

from typing import Any, Dict, Optional


class GovernanceError(Exception):
    """Base exception for all governance framework errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context
        original_error: Optional original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message
            context: Optional context dictionary
            original_error: Optional original exception
        """
        self.message = message
        self.context = context or {}
        self.original_error = original_error

        full_message = message
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            full_message = f"{message} (Context: {context_str})"
        if original_error:
            full_message = f"{full_message} (Caused by: {str(original_error)})"

        super().__init__(full_message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(GovernanceError):
    """Raised when a policy catalog cannot be loaded or applied.

    Covers malformed YAML, pydantic validation failures and Snowflake DDL
    statements that the service rejected.
    """

    pass


# =============================================================================
# Policy Errors
# =============================================================================


class PolicyError(GovernanceError):
    """Base exception for policy definition and binding errors."""

    pass


class PolicyDefinitionError(PolicyError):
    """Raised when a policy definition is malformed.

    Examples are an unknown predicate or outcome type, or an outcome that
    cannot produce the policy's declared value type.
    """

    pass


class NoDefaultRuleError(PolicyDefinitionError):
    """Raised when a policy is declared without a fallback outcome."""

    def __init__(
        self,
        policy_id: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            policy_id: Identifier of the incomplete policy
            context: Optional context dictionary
            original_error: Optional original exception
        """
        message = f"Policy has no default rule: {policy_id}"
        super().__init__(message, context, original_error)
        self.policy_id = policy_id


class DuplicateNameError(PolicyError):
    """Raised when registering a policy whose identifier is already taken."""

    def __init__(
        self,
        policy_id: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            policy_id: Identifier that is already registered
            context: Optional context dictionary
            original_error: Optional original exception
        """
        message = f"Policy already registered: {policy_id}"
        super().__init__(message, context, original_error)
        self.policy_id = policy_id


class UnknownPolicyError(PolicyError):
    """Raised when a policy identifier is not present in the registry."""

    def __init__(
        self,
        policy_id: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            policy_id: Identifier that was not found
            context: Optional context dictionary
            original_error: Optional original exception
        """
        message = f"Policy not found: {policy_id}"
        super().__init__(message, context, original_error)
        self.policy_id = policy_id


class ConflictError(PolicyError):
    """Raised when a binding would replace or orphan an existing one.

    Snowflake allows a single row access policy per table and a single
    masking policy per column, and refuses to drop a policy that is still
    attached.
    """

    pass


class InvalidBindingError(PolicyError):
    """Raised when a binding target does not suit the policy kind."""

    pass


class PolicyKindMismatchError(PolicyError):
    """Raised when a policy is evaluated as the wrong kind."""

    def __init__(
        self,
        policy_id: str,
        expected: str,
        actual: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            policy_id: Identifier of the policy
            expected: Kind the caller asked for
            actual: Kind the policy was declared with
            context: Optional context dictionary
            original_error: Optional original exception
        """
        message = f"Policy {policy_id} is a {actual} policy, not {expected}"
        super().__init__(message, context, original_error)
        self.policy_id = policy_id
        self.expected = expected
        self.actual = actual
