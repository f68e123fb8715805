# Overview: JSON response envelope shared by every route.

"""
Every response body is {"status": "success" | "error", "message"?, "data"?, ...}.
Routes return success(...); errors are rendered by the app error handlers.
"""


def success(data=None, *, message: str | None = None, status_code: int = 200, **extra):
    body = {"status": "success"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body, status_code


def error(message: str, status_code: int):
    return {"status": "error", "message": message}, status_code
