"""Tutorly token gateway: signed identity tokens and the request gate that checks them."""
