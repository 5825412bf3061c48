"""Application services used by the HTTP blueprints."""
