"""
Test suite for the sports API load harness.

This package contains:
- unit/: flow, credential, metrics, and parsing tests against fake transports
- integration/: end-to-end flows against an in-process Flask stub API
- fakes.py: scripted transport doubles
- stub_api.py: the Flask stub API and its test-client transport
"""
