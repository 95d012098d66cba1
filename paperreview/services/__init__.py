"""Integrations with the paper record store and user inboxes."""
