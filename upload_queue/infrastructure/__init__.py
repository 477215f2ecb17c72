"""
Infrastructure layer: configuration, logging, the HTTP transport and
environment checks.
"""
