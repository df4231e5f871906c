"""
Code Player API Package
FastAPI backend for the playground page
"""

from .main import create_app
from .streaming import StreamEvent, sse_response, wrap_generator

__all__ = ["create_app", "StreamEvent", "sse_response", "wrap_generator"]
