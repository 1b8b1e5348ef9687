"""Properties feature: entity, repository, service and routes."""
