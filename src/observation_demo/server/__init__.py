"""
observation_demo.server

Instrumented demo server (FastAPI).

Responsibilities:
- Expose `/foo` and `/user/{user_id}` endpoints with simulated latency.
- Observe every matching HTTP request and the service methods behind them.
"""

# Package marker.
