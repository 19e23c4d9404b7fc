"""Infrastructure adapters: database, messaging, logging, metrics."""
