"""
Scheduling Application Layer

Ports, DTOs and the services that coordinate the scheduling domain.
"""
