"""
Boundary layer for external system integrations.

Handles all interactions with external systems (generation provider,
object storage, job metadata table).
"""
