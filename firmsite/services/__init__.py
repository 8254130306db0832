"""Service layer package housing the site's logic.

Contains the content backend client, the content/image interleaver used
by the service pages, site-info lookup, and admin form handling. Each
service is imported by routes.
"""
