"""Pydantic models for log entries."""
