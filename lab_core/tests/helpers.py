# lab_core/tests/helpers.py


def rows(*pairs):
    """
    rows(("Hemoglobin", "13.5"), ...) -> result_data payload
    """
    if not pairs:
        pairs = (("Hemoglobin", "13.5"),)
    return [{"parameter": p, "value": v} for p, v in pairs]


def error(resp) -> dict:
    return resp.json()["error"]
