#!/usr/bin/env python3
"""
Main entry point for the CoachPro club manager web application.

This script launches the Flask-based web server.
"""
import os

from coachpro.ui.web_app import run_web_app

if __name__ == "__main__":
    # Serve a front end from ./static when one is deployed next to the API
    static_folder = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static")
    run_web_app(static_folder=static_folder if os.path.isdir(static_folder) else None)
