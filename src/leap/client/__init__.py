"""Leap Python SDK — Client library for the Leap API.

Provides both async and sync clients for interacting with a Leap server.

Quick start::

    from leap.client import LeapClient

    client = LeapClient("http://localhost:8080")
    client.upsert({"file": "go", "title": "pkg.go.dev", "url": "https://pkg.go.dev"})

    # Where would the browser land?
    print(client.resolve("pkg.go"))
"""

from leap.client.client import AsyncLeapClient, LeapClient

__all__ = ["AsyncLeapClient", "LeapClient"]
