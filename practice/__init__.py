"""
Practice Module

Configuration and command line front end.

This module provides:
- YAML-based configuration loading
- Logging setup
- Editor session with the run/submit gate
- CLI for listing, running and submitting challenges
"""

__version__ = "0.1.0"
