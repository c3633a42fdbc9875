"""
Memos: a user's private notes, embedded for assist retrieval.
"""
