"""
observation_demo.client

Instrumented demo client.

Responsibilities:
- Call the demo server through an observed HTTP client.
- Wrap each run in a manually created observation (the "command-line runner").
"""

# Package marker.
