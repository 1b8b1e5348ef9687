"""Users feature: entity, repository, service and routes."""
