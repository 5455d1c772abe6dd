# SPDX-License-Identifier: MIT
"""Core data model for mheader: header tree, values and build graph."""
