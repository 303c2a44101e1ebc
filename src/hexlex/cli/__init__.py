"""
hexlex Command-Line Interface
=============================

This package provides the command-line tool for hexlex:

- **hexscan**: Check, dissect and display S-Record and Intel HEX files

The tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["hexscan"]
