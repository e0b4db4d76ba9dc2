"""Tuition marketplace API package.

Only the notification fan-out subsystem lives here: recipient resolution,
channel delivery and the in-app inbox.
"""
