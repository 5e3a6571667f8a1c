"""
Shared Kernel

This module contains base classes and utilities shared across the loft
pricing, availability and booking contexts.
"""
