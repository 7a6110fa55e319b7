"""CheckoutRec: purchase-history recommendations for the checkout page.

This package provides a backend service that suggests products from the
categories a shopper buys most, and adds checkout form fields based on what
is in the cart.

Modules:
    api: FastAPI application and REST API endpoints
    checkout: Cart-conditioned checkout fields and extension points
    recommender: Category-affinity recommender and commerce store access
"""

__version__ = "0.1.0"
