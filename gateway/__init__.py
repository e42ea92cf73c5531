"""
HTTP gateway for around.

Only /signup, /login and /health are reachable without a bearer token.
"""
