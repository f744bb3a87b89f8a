"""Domain services: identity, lifecycle, registrations, views and derived read models."""
