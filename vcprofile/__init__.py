"""Profile engine package: VC parsing, profile building, validation, persistence.

This package extracts a canonical user profile from verifiable-credential
documents and cross-checks stored profiles against the same documents.
"""
