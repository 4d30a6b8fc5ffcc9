"""
s6 sync agent.

Receives object-store "created" notifications over HTTP and, per bucket
lane, downloads videos to local disk or warms the Thumbor cache for images.
"""

__version__ = "0.1.0"
