"""Core model-service layer."""
