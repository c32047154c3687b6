"""Pydantic schemas for events, policy data, canonical model and configs."""
