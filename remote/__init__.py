"""
Remote Module

Delegated execution for languages the host cannot run itself.

This module provides:
- Unified BaseExecutionService interface
- The web tier's batch execution endpoint and a Piston backend
- Retry logic with exponential backoff
- Submission recording for fully passing runs
"""

__version__ = "0.1.0"
