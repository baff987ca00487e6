"""
Access-control error kinds.
Raised from the session resolver and the access service; all are
HTTPExceptions so FastAPI renders them without extra handlers.
"""

from fastapi import HTTPException, status


class AuthenticationMissing(HTTPException):
    def __init__(self, detail: str = "Sessão inválida ou expirada"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ProfileNotFound(HTTPException):
    def __init__(self, detail: str = "Perfil de usuário não encontrado. Contate o administrador."):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ProfileInactive(HTTPException):
    def __init__(self, detail: str = "Usuário desativado. Contate o administrador."):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class PermissionFetchFailed(HTTPException):
    """Backend error while loading permission state.

    Callers turn this into an empty allowed set; it only escapes as a 503
    when nothing upstream catches it.
    """

    def __init__(self, detail: str = "Falha ao carregar permissões"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
