"""
Shared infrastructure: storage gateway, error taxonomy, logging, correlation ids.
"""
