import pytest

from herbtrace.core.transitions import evaluate_gate, next_phase, normalize_chain_status
from herbtrace.errors import ValidationError


@pytest.mark.parametrize(
    "moisture, pesticide_pass, expected",
    [
        (10.5, True, "PASS"),
        (12, True, "PASS"),
        (15, True, "FAIL"),
        (5, False, "FAIL"),
    ],
)
def test_evaluate_gate(moisture, pesticide_pass, expected):
    assert evaluate_gate(moisture, pesticide_pass, 12) == expected


def test_next_phase():
    assert next_phase("DRYING") == "DRYING_DONE"
    assert next_phase("receipt") == "RECEIPT_DONE"
    assert next_phase("GRINDING") == "GRINDING_DONE"
    assert next_phase("UNKNOWN") is None
    assert next_phase("") is None


def test_normalize_chain_status():
    assert normalize_chain_status(" in_progress ") == "IN_PROGRESS"
    assert normalize_chain_status(None) is None
    with pytest.raises(ValidationError):
        normalize_chain_status(None, required=True)
    with pytest.raises(ValidationError):
        normalize_chain_status("DONE")
