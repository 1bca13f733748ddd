"""Dependencies de autenticación para FastAPI"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional, Dict
import uuid
from shared.auth.jwt_handler import verify_token


security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict:
    '''Obtener usuario actual desde token JWT'''
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Token de autenticación requerido',
            headers={'WWW-Authenticate': 'Bearer'},
        )

    identity = verify_token(credentials.credentials)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Token inválido o expirado',
            headers={'WWW-Authenticate': 'Bearer'},
        )

    try:
        uuid.UUID(identity['user_id'])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Token inválido: user_id mal formado',
            headers={'WWW-Authenticate': 'Bearer'},
        )

    return identity


def require_roles(*roles: str):
    '''Dependency factory: el usuario debe tener alguno de los roles indicados'''

    async def _checker(current_user: Dict = Depends(get_current_user)) -> Dict:
        role = current_user.get('role')
        if role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Acceso denegado. Requiere rol {' o '.join(roles)}, tu rol es: {role}"
            )
        return current_user

    return _checker
