GENERIC_SCAN_ERROR = "Scan failed. Please try again."
MAX_ERROR_LENGTH = 200


def sanitize_error(error: BaseException | str | None) -> str:
    """Client-safe error text: hides paths, tracebacks and oversized messages."""
    if isinstance(error, BaseException):
        msg = str(error)
    else:
        msg = error or ""
    if not msg:
        return "Internal server error"
    if "/" in msg or "\\" in msg or len(msg) > MAX_ERROR_LENGTH:
        return GENERIC_SCAN_ERROR
    return msg
