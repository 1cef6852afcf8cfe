"""Core configuration and enumerations."""
