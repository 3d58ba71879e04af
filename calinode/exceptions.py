"""
Standardized exception hierarchy for calinode
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class CaliNodeError(Exception):
    """
    Base exception for all calinode errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise CaliNodeError(
            message="Failed to save quest archive",
            user_id="uid-123",
            operation="save_daily_quests",
            context={"date": "2024-01-15"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # 'message' is reserved by logging
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Document Store Errors
# ==========================================

class DatabaseError(CaliNodeError):
    """
    Base class for document-store errors
    """
    pass


class ConnectionError(DatabaseError):
    """Document store connection failed"""

    def __init__(self, message: str = "Document store connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble reaching the cloud. Your progress is kept on this device.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Document store read or write failed"""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        **kwargs
    ):
        self.path = path
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your progress. It is kept on this device.",
            context={"path": path},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(CaliNodeError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The app is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> CaliNodeError:
    """
    Wrap external exceptions (psycopg, OSError, etc.) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate CaliNodeError subclass

    Example:
        try:
            await store.set(path, data)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="set_document", context={"path": path})
    """
    import psycopg

    if isinstance(error, CaliNodeError):
        return error

    path = (context or {}).get("path")

    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Document store connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Document store query failed: {str(error)}",
            path=path,
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, OSError):
        return QueryError(
            message=f"Local store I/O failed: {str(error)}",
            path=path,
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    return CaliNodeError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
