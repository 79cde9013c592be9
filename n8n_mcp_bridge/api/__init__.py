"""
FastAPI Application
===================

HTTP surface of the bridge: app factory, bearer-token gate and routes.
"""
