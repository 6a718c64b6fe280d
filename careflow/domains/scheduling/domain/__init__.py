"""
Scheduling Domain Layer

Entities, value objects, events and domain services of the scheduling core.
"""
