"""Configuration resolution, cargo invocations, file hashing and asset syncing for Leptos projects."""

__version__ = "0.2.32"