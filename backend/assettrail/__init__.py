"""
Asset lifecycle and audit trail core.
"""
