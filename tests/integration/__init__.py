"""
End-to-end tests that run the real flows against the Flask stub API.
"""
