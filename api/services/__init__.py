"""Business logic for the API routes."""
