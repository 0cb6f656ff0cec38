# Copyright (c) Syntropy Systems
"""
raven - A command-line HTTP stress test application.

Fire batches of concurrent requests, or ramp concurrency until responses degrade.
"""

from raven_http.stress import RampController, perform_do

__version__ = "1.0.1"
__all__ = ["RampController", "perform_do", "__version__"]
