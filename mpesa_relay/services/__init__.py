"""
Services Package
Payment, callback and audit services
"""
