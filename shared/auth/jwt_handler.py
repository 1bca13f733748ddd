"""Manejo de JWT tokens"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
from jose import JWTError, jwt
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

ROLES = ("organizer", "attendee", "regular", "venue_owner", "admin", "vendor")


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    '''Crear token de acceso JWT'''
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({'exp': expire, 'type': 'access'})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


def decode_token(token: str) -> Optional[Dict]:
    '''Decodificar y validar token JWT'''
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError as e:
        logger.debug(f'Token rechazado: {e}')
        return None


def verify_token(token: str) -> Optional[Dict]:
    '''
    Verificar token y extraer la identidad.

    Returns:
        {"user_id": str, "role": str} o None si el token es inválido,
        expiró o no trae identificador de usuario
    '''
    payload = decode_token(token)
    if payload is None:
        return None

    user_id = payload.get('sub') or payload.get('userId') or payload.get('user_id')
    if not user_id:
        return None

    role = payload.get('role') or 'attendee'
    if role not in ROLES:
        logger.warning(f'Rol desconocido en token: {role}')
        return None

    return {
        'user_id': str(user_id),
        'role': role,
        'email': payload.get('email'),
    }
