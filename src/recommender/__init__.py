"""Recommendation module for CheckoutRec.

This module contains the commerce entities, the store collaborator the
service reads them from, and the category-affinity recommender that turns a
shopper's purchase history into product suggestions.
"""
