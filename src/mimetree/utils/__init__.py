#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mimetree/utils/__init__.py
"""Shared helpers for plugins: dependency checks, network fetching and image sniffing."""
