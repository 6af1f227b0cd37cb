"""Names and texts inferred from a route's method and pattern."""

import re

VERBS = {
    "GET": "Get",
    "POST": "Create",
    "PUT": "Replace",
    "PATCH": "Update",
    "DELETE": "Delete",
}

STATUS_TEXT = {
    200: "OK",
    201: "Created",
    204: "No Content",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _param_name(segment: str) -> str | None:
    if segment.startswith("{") and segment.endswith("}"):
        return segment[1:-1]
    return None


def _upper_first(s: str) -> str:
    return s[:1].upper() + s[1:]


def operation_id(method: str, pattern: str) -> str:
    """``GET /users/{id}`` -> ``getUsersById``."""
    core = []
    for seg in pattern.strip("/").split("/"):
        name = _param_name(seg)
        if name is not None:
            core.append("By" + _upper_first(name))
        else:
            core.append(_upper_first(re.sub(r"[^A-Za-z0-9]", "", seg)))
    return method.lower() + "".join(core)


def infer_summary(method: str, pattern: str) -> str:
    """``GET /users/{id}`` -> ``Get users by id``."""
    words = []
    for seg in pattern.strip("/").split("/"):
        name = _param_name(seg)
        words.append(f"by {name}" if name is not None else seg)
    nice = re.sub(r"\s+", " ", " ".join(words))
    method = method.upper()
    verb = VERBS.get(method, method.lower().capitalize())
    return f"{verb} {nice}".strip()


def status_text(code: int) -> str:
    return STATUS_TEXT.get(code, f"Status {code}")
