#!/usr/bin/env python3
"""
setup.py compatibility wrapper for tools that still expect one.

cnysa uses pyproject.toml with hatchling as the build backend.
For normal installation, use:
    pip install .
"""

from setuptools import setup

# Configuration is read from pyproject.toml.
setup()
