"""Checkout customisation for CheckoutRec.

This module contains the cart-conditioned checkout fields and the explicit
extension points the web layer calls while rendering and submitting the
checkout page.
"""
