"""Configuration: environment settings and the fixed commission rate table."""
