from fastapi import HTTPException, status


class ApiError(HTTPException):
    """HTTPException carrying a short error identifier and detail strings."""

    def __init__(self, status_code: int, error: str, *details: str):
        super().__init__(status_code, detail=list(details))
        self.error = error


class Exceptions:
    UNAUTHORIZED = ApiError(status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED", "Authentication required")
    INVALID_LOGIN = ApiError(status.HTTP_401_UNAUTHORIZED, "INVALID_LOGIN", "Invalid email or password")
    FORBIDDEN = ApiError(status.HTTP_403_FORBIDDEN, "FORBIDDEN", "Insufficient permissions")
    COMMENT_DELETE_FORBIDDEN = ApiError(status.HTTP_403_FORBIDDEN, "FORBIDDEN",
                                        "Only the post creator can delete comments")
    EMAIL_TAKEN = ApiError(status.HTTP_400_BAD_REQUEST, "REGISTRATION_FAILED", "Email is already registered")

    @staticmethod
    def not_found(entity: str, entity_id: int, status_code: int = status.HTTP_404_NOT_FOUND) -> ApiError:
        return ApiError(status_code, f"{entity.upper()}_NOT_FOUND", f"{entity.title()} with ID {entity_id} not found")
