"""Utility helpers package for images, pagination and text formatting.

Modules here encode uploaded images to base64 and data URIs, compute the
page-number strip shown under paginated lists, and format dates and
excerpts for templates.
"""
