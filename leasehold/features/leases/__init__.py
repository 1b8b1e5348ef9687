"""Leases feature: entity, repository, service and routes."""
