# src/intake/domain/services/tracking_code.py
from __future__ import annotations

import random
import re
from datetime import datetime
from typing import Optional

TRACKING_CODE_PATTERN = re.compile(r"^[A-Z]+-\d{8}-\d{4}$")

_sysrand = random.SystemRandom()


def generate_tracking_code(prefix: str, now: datetime, rng: Optional[random.Random] = None) -> str:
    """PREFIX-YYYYMMDD-NNNN with a random zero-padded suffix; uniqueness is the store's job."""
    suffix = (rng or _sysrand).randint(0, 9999)
    return f"{prefix}-{now:%Y%m%d}-{suffix:04d}"
