# SPDX-License-Identifier: MIT
"""Generator configuration for mheader."""
