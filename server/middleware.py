"""ASGI middleware assigning a request id to every HTTP request."""

import uuid

REQUEST_ID_HEADER = b"x-request-id"


class RequestIDMiddleware:
    """
    Store the request id on `request.state.request_id` and echo it back.

    Written as plain ASGI so streaming bodies pass through untouched.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        for name, value in scope.get("headers", []):
            if name == REQUEST_ID_HEADER:
                request_id = value.decode("latin-1")
                break
        request_id = request_id or f"req_{uuid.uuid4().hex[:12]}"
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_request_id(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER, request_id.encode("latin-1")))
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_with_request_id)
