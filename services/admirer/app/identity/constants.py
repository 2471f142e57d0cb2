"""
Identity domain — handle grammar and limits.
"""
from __future__ import annotations

import re

# X (Twitter) handle grammar after normalization
HANDLE_PATTERN = re.compile(r"^[a-z0-9_]{1,15}$")
HANDLE_MAX_LENGTH: int = 15
