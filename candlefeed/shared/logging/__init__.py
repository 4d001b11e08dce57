"""Setup de logging."""
