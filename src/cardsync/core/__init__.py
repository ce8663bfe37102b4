"""Configuration, persistent store access, and key naming."""
