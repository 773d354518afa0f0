"""
UI package for the CoachPro club manager.

This package contains the Flask web server.
"""
from .web_app import create_app, run_web_app

__all__ = ["create_app", "run_web_app"]
