"""
Structured audit logging module for the StarBite backend.

This module provides an AuditLogger class that logs events to a dedicated 'audit' logger
in structured JSON format. The request_id and actor are propagated across async calls
using contextvars.ContextVar.

Token values are never written to the audit log, only the subject they were issued for.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Context variable for tracking request_id across async calls
_request_id_context: ContextVar[Optional[str]] = ContextVar(
    'request_id', default=None
)

# Context variable for tracking actor (authenticated user) across async calls
_actor_context: ContextVar[Optional[str]] = ContextVar(
    'actor', default=None
)


class AuditLogger:
    """
    Structured audit logger for authentication and content changes.

    All events are written to a dedicated 'audit' logger in JSON format.
    """

    def __init__(self):
        self.logger = logging.getLogger('audit')

    def set_request_id(self, request_id: str) -> None:
        """Set the request_id for the current context."""
        _request_id_context.set(request_id)

    def get_request_id(self) -> Optional[str]:
        return _request_id_context.get()

    def set_actor(self, actor: str) -> None:
        """Set the authenticated user for this request context."""
        _actor_context.set(actor)

    def get_actor(self) -> Optional[str]:
        """Get the current actor from context, or None."""
        return _actor_context.get()

    def log(
        self,
        action: str,
        actor: str,
        resource: str,
        resource_id: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Core method to log a structured audit event.

        Args:
            action: Type of action performed (e.g., 'LOGIN', 'CREATE', 'UPDATE')
            actor: User performing the action; 'user' resolves to the context actor
            resource: Type of resource affected (e.g., 'Restaurant', 'Review')
            resource_id: Unique identifier of the affected resource
            status: Result status (e.g., 'success', 'failure')
            details: Optional dict of additional context
        """
        event = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'action': action,
            'actor': actor if actor != 'user' else (self.get_actor() or 'anonymous'),
            'resource': resource,
            'resource_id': resource_id,
            'status': status,
            'request_id': self.get_request_id(),
            'details': details or {},
        }
        self.logger.info(json.dumps(event))

    def log_user_registration(self, user_id: str, created: bool) -> None:
        """Log a registration call; ``created`` is False when the email already existed."""
        self.log(
            action='REGISTER',
            actor=f'user:{user_id}',
            resource='User',
            resource_id=user_id,
            status='success',
            details={'created': created},
        )

    def log_login(self, user_id: str, status: str) -> None:
        """Log a login attempt and the token pair issued for it."""
        self.log(
            action='LOGIN',
            actor=f'user:{user_id}',
            resource='Session',
            resource_id=user_id,
            status=status,
        )

    def log_token_refresh(self, user_id: str) -> None:
        """Log an access token issued from a refresh token."""
        self.log(
            action='TOKEN_REFRESH',
            actor=f'user:{user_id}',
            resource='Session',
            resource_id=user_id,
            status='success',
        )

    def log_restaurant_create(self, restaurant_id: str, name: str, image_count: int) -> None:
        self.log(
            action='CREATE',
            actor='user',
            resource='Restaurant',
            resource_id=restaurant_id,
            status='success',
            details={'name': name, 'image_count': image_count},
        )

    def log_review_change(
        self,
        operation: str,
        review_id: str,
        restaurant_id: Optional[str] = None,
        rating: Optional[float] = None,
    ) -> None:
        """
        Log review creation or update.

        Args:
            operation: 'CREATE' or 'UPDATE'
            review_id: Review identifier
            restaurant_id: Restaurant the review belongs to, when known
            rating: New rating
        """
        details: Dict[str, Any] = {}
        if restaurant_id:
            details['restaurant_id'] = restaurant_id
        if rating is not None:
            details['rating'] = rating

        self.log(
            action=operation,
            actor='user',
            resource='Review',
            resource_id=review_id,
            status='success',
            details=details,
        )


# Global audit logger instance for convenient import
audit = AuditLogger()
