"""
auth — User authentication module.

Provides:
  • Password hashing (bcrypt)
  • JWT creation & verification
  • Credential store and server-side sessions
  • Register / Login / Logout API routes
  • ``get_current_user_id`` FastAPI dependency (the auth gate)
"""
