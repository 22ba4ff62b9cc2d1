"""
client — Session side of JWT authentication.

Provides:
  • ``SessionStore`` — namespaced, durable key/value storage
  • ``SessionController`` — anonymous / authenticated state machine
  • ``IdentityClient`` — async transport to the identity service
  • route gate, text views and the ``jwt-session`` CLI
"""
