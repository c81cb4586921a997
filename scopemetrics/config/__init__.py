"""
Configuration module for scopemetrics.
"""
