"""
Project configuration.
"""
