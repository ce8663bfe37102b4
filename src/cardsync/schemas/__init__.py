"""Pydantic schemas for cached cards and onboarding records."""
