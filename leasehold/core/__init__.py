"""Core cross-cutting concerns: settings, errors, logging, middleware."""
