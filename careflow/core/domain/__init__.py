"""
Domain Layer - Core DDD building blocks

This module provides base classes for Domain-Driven Design:
- Entities: Objects with identity and lifecycle
- Value Objects: Immutable objects compared by value
- Events: Domain events for communication
- Exceptions: Domain-specific error handling
"""

from careflow.core.domain.entities import (
    AggregateRoot,
    Entity,
    generate_uuid_str,
)
from careflow.core.domain.events import (
    DomainEvent,
    DomainEventPublisher,
)
from careflow.core.domain.exceptions import (
    AuthorizationException,
    ConcurrencyException,
    DomainException,
    DuplicateEntityException,
    EntityNotFoundException,
    IntegrationException,
    InvalidOperationException,
    PaymentException,
    ValidationException,
)
from careflow.core.domain.value_objects import (
    DEFAULT_CURRENCY,
    Money,
    StatusEnum,
    ValueObject,
)

__all__ = [
    # Entities
    "Entity",
    "AggregateRoot",
    "generate_uuid_str",
    # Value Objects
    "ValueObject",
    "Money",
    "StatusEnum",
    "DEFAULT_CURRENCY",
    # Events
    "DomainEvent",
    "DomainEventPublisher",
    # Exceptions
    "DomainException",
    "ValidationException",
    "EntityNotFoundException",
    "InvalidOperationException",
    "ConcurrencyException",
    "AuthorizationException",
    "DuplicateEntityException",
    "PaymentException",
    "IntegrationException",
]
