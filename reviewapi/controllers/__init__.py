"""
Request controllers.

Controllers take request data and the acting user, and return a
``(body, status code, headers)`` tuple. Workflow errors are translated to
HTTP errors by :func:`.util.handle_workflow_errors`.
"""
