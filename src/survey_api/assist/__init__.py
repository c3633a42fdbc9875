"""
AI assist: embedding and generation seam plus memo retrieval.
"""
