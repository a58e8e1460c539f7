"""Configuration, logging, errors and metrics shared by the client."""
