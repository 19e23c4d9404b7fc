"""Task store: models, queries and seed data."""
