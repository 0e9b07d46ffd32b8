"""
Load-generation harness for the Chunky Sports content API.

Simulates a population of users (guests browsing feeds and
authenticated "true users" hopping between teams) and aggregates
per-endpoint success, failure, and latency statistics for the run.

Key Concepts Demonstrated:
- Stateful virtual-user sessions with a per-user token lifecycle
- Per-logical-endpoint metrics shared safely across concurrent users
- Injectable randomness and pacing so flows are deterministic in tests
- Locust as the load-driving engine, with a thin transport adapter
"""

__version__ = "1.0.0"
