import uuid

REFERENCE_PREFIX = "ps_ref_"


def new_reference() -> str:
    return f"{REFERENCE_PREFIX}{uuid.uuid4()}"


def to_minor_units(amount: int) -> int:
    """Naira to kobo."""
    return int(amount) * 100
