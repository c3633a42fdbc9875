"""
User accounts: registration, credential verification, profile.
"""
