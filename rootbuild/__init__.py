"""Root-project build configuration: repositories, buildscript classpath, shared build dir, clean."""

__version__ = "0.1.0"
