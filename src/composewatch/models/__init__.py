"""Data models for project configuration and deployment decisions."""
