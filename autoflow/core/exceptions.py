"""
Custom Exceptions for AUTOFLOW

Exception Hierarchy:
- AutoflowException (base)
  - WorkflowError
    - WorkflowValidationError (don't retry)
    - NodeExecutionError (don't retry)
  - ConfigurationError (don't retry)

Validation problems found by the validators are returned as issue lists,
not raised. These exceptions cover parsing of malformed definitions and
failures inside a single node handler; the engine catches the latter and
turns them into an error step.
"""

from typing import Optional


class AutoflowException(Exception):
    """Base exception for all AUTOFLOW errors"""

    def __init__(self, message: str, retry_allowed: bool = True):
        super().__init__(message)
        self.message = message
        self.retry_allowed = retry_allowed


# ============================================================================
# WORKFLOW ERRORS
# ============================================================================

class WorkflowError(AutoflowException):
    """Base class for workflow-related errors"""
    pass


class WorkflowValidationError(WorkflowError):
    """
    Workflow definition cannot be parsed (e.g., node is not an object,
    trigger has the wrong shape).
    Should NOT be retried - fix the workflow definition.
    """

    def __init__(self, message: str, node_id: Optional[str] = None):
        super().__init__(message, retry_allowed=False)
        self.node_id = node_id


class NodeExecutionError(WorkflowError):
    """
    A node handler failed at run time.
    Should NOT be retried - the same node would fail the same way.
    """

    def __init__(self, message: str, node_id: Optional[str] = None, node_type: Optional[str] = None):
        super().__init__(message, retry_allowed=False)
        self.node_id = node_id
        self.node_type = node_type


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigurationError(AutoflowException):
    """
    Invalid environment configuration.
    Should NOT be retried - fix the settings.
    """

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message, retry_allowed=False)
        self.setting = setting
