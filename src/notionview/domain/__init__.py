"""Domain layer: entities and services for the Notion record graph."""
