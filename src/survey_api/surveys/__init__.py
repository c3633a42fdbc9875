"""
Survey authoring: surveys with ordered questions.
"""
