"""FastAPI application package for the ProgressLens authoring service.

The service lets teachers build learning sessions made of ordered questions
and options, reorder and duplicate them, and lets students enroll by access
code. Business logic lives in `progresslens/logic/`, route handlers in
`progresslens/routes/`.
"""

from __future__ import annotations

from progresslens.main import create_app

__all__ = ["create_app"]
