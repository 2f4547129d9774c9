import random
import re
from datetime import datetime, timezone

from src.intake.domain.services.tracking_code import TRACKING_CODE_PATTERN, generate_tracking_code


def test_format_prefix_date_and_four_digits():
    code = generate_tracking_code("PROV", datetime(2025, 3, 9, tzinfo=timezone.utc))
    assert re.fullmatch(r"PROV-20250309-\d{4}", code)
    assert TRACKING_CODE_PATTERN.match(code)


def test_suffix_is_zero_padded():
    class Zero(random.Random):
        def randint(self, a, b):
            return 7

    code = generate_tracking_code("PROV", datetime(2025, 12, 31, tzinfo=timezone.utc), Zero())
    assert code == "PROV-20251231-0007"
