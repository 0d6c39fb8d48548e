"""Service layer for the Casbin SQL adapter."""
