"""
HTTP routers grouped by actor: public, customer (session guarded), staff (JWT).
"""
