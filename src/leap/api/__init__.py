"""HTTP API — FastAPI presentation layer over the Leap engine."""
