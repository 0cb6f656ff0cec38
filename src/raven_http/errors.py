# Copyright (c) Syntropy Systems
"""Exception types for raven."""


class RavenError(Exception):
    """Base error for raven."""


class ConfigurationError(RavenError):
    """Invalid run configuration. Raised before any request is sent."""


class ReportError(RavenError):
    """Error while formatting or writing run results."""
