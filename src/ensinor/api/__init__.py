"""API layer: the callable surface for each resource.

Key rules:

1. No SQLAlchemy imports - only call repo functions (the Session type aside)
2. Payloads are validated with Pydantic before any lookup or write
3. Every function returns an ``ApiResponse`` envelope
4. Errors are raised as ``ensinor.errors`` types and turned into envelopes
   by ``handlers.handle_error`` at the outermost caller
"""
