"""
Authentication: password hashing, access tokens, current-user dependency.
"""
