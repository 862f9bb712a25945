"""Companion Stories: interactive AI companion stories backend."""
