"""FastAPI application module for CheckoutRec.

This module contains the FastAPI application, route handlers, and API
endpoints the checkout web layer calls for recommendations and dynamic
checkout fields.
"""
