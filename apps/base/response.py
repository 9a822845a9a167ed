from rest_framework.response import Response


class ApiResponse:
    @staticmethod
    def success(message: str, data=None, status=200, meta=None):
        payload = {
            "success": True,
            "message": message,
            "data": data,
        }
        if meta is not None:
            payload["meta"] = meta
        return Response(payload, status=status)

    @staticmethod
    def error(message: str, errors=None, status=400):
        return Response({
            "success": False,
            "message": message,
            "errors": errors
        }, status=status)

    @staticmethod
    def no_content():
        return Response(status=204)
