"""
Response collection: validated, atomic survey submissions.
"""
