"""Behave step definitions for WebDAV properties and ETags.

Importing `davprops.steps.webdav_properties` from a features/steps module
registers the steps with behave's global step registry.
"""
