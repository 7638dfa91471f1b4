import time

_UNITS = ("B", "KB", "MB", "GB", "TB")


def get_current_ms() -> int:
    return int(time.time() * 1000)


def format_time_taken_ms(start_time_ms: int, message: str) -> str:
    """Return ``"<message> took <elapsed> ms."`` measured from ``start_time_ms``."""
    return f"{message} took {get_current_ms() - start_time_ms} ms."


def format_bytes(num_bytes: int) -> str:
    value = float(num_bytes)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)}{unit}"
            return f"{value:.2f}{unit}"
        value /= 1024
