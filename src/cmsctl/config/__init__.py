"""Configuration layer — pydantic models, TOML discovery, logging setup."""
