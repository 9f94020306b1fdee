from __future__ import annotations

from typing import Literal


TokenKind = Literal["access", "refresh"]

IdentityResolution = Literal["matched-by-provider", "linked-by-email", "created"]
