"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants (file names, extensions, source tags)
- exceptions: Custom exception hierarchy
"""
