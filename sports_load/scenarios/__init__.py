"""
Locust scenario user classes.

Each module in this package defines Locust ``HttpUser`` subclasses
that model one traffic pattern:

- :mod:`.true_user`: logged-in journey with team hopping
- :mod:`.guest`: web and mobile guest launch bursts

All concrete scenarios inherit from :class:`.base.ChunkyApiUser`, which
wires Locust's HTTP session into the shared metrics registry.
"""
