"""
Scheduling Infrastructure Layer

Persistence, external gateways, notifications and background jobs.
"""
