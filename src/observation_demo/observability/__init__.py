"""
observation_demo.observability

Observability package.

Responsibilities:
- Structured logging configuration shared by the client and server demos.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Metric/trace/log collaborators live in `observation_demo.handlers`; this package only
# owns process-level logging setup.
