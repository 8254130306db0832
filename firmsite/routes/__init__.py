"""Route blueprints package.

Contains the Flask blueprints for each route group: the public site
pages, the admin panel under /admin, and the JSON endpoints under /api.
Each module documents its pages or JSON contracts.
"""
