"""Leasehold API: layered CRUD backend for users, properties and leases."""

__version__ = "0.1.0"
