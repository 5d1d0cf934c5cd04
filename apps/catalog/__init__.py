"""Catalog app package.

Holds the bookable resources of the hotel (room types, meal options and
activities) together with their daily unit pools. Records are managed
through the Django admin; the booking domain only reads them.
"""
