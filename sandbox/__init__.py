"""
Sandbox Module

Isolated execution of learner-submitted Python solutions.

This module provides:
- One child interpreter per test case, killed when its time budget elapses
- Memory and CPU limits (platform-dependent)
- Import allowlisting and disabled dangerous builtins inside the child
- Best-effort security (documented limitations)

WARNING: This sandbox is NOT a hardened isolation boundary. The source
denylist and import guard are speed bumps for honest mistakes and casual
misuse, not protection against a determined attacker.
"""

__version__ = "0.1.0"
