import re

from services.bookings import generate_reference_number

REF_RE = re.compile(r"^BK-([0-9A-Z]+)-([0-9A-Z]{4})$")


def test_format():
    ref = generate_reference_number()
    assert REF_RE.match(ref), ref


def test_ten_thousand_samples_are_unique():
    refs = [generate_reference_number() for _ in range(10_000)]
    assert len(set(refs)) == len(refs)
    assert all(REF_RE.match(r) for r in refs)


def test_timestamp_part_strictly_increases():
    stamps = [int(REF_RE.match(generate_reference_number()).group(1), 36) for _ in range(500)]
    assert all(b > a for a, b in zip(stamps, stamps[1:]))
