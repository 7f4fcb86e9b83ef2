"""
code-format Command-Line Interface
==================================

- **codefmt**: the ``code-format`` command
- **diagnostics**: leveled, colorized log output for the command
- **errors**: exit codes and exception reporting

The command is a Click application with help and error reporting.
"""

__all__ = ["codefmt"]
