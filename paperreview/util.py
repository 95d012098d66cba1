"""Helpers for reaching application state from anywhere in the package."""

import os
from typing import Optional, Union, Mapping, Any

from flask import Flask, current_app, g, has_app_context


def get_application_config(app: Optional[Flask] = None) \
        -> Union[Mapping[str, Any], os._Environ]:
    """
    Get a configuration from the current app, or fall back to env.

    Parameters
    ----------
    app : :class:`flask.Flask`

    Returns
    -------
    dict-like
        This is either the current Flask application configuration, or
        ``os.environ``. Either of these should support the ``get()`` method.

    """
    if app is not None:
        return app.config
    if has_app_context():
        return current_app.config
    return os.environ


def get_application_global() -> Optional[Any]:
    """Get the application global (:data:`flask.g`), if available."""
    if has_app_context():
        return g
    return None
