"""
embedmongo Testing Integration

pytest fixtures for running tests against an embedded MongoDB instance.
"""
