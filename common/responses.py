from rest_framework import status as http_status
from rest_framework.response import Response


def envelope(message: str, data=None, status: int = http_status.HTTP_200_OK) -> Response:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return Response(body, status=status)
