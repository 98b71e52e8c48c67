"""
gprasm Command-Line Interface
=============================

This package provides the ``gprasm`` command, a Click-based front end to
the assembler with help text and consistent error reporting.
"""

__all__ = ["gprasm"]
