"""
auth — Identity service endpoints.

Provides:
  • JWT access / refresh token creation & verification (PyJWT)
  • Password hashing (bcrypt)
  • Register / obtain-token / refresh-token API routes
  • ``get_current_user`` FastAPI dependency
"""
