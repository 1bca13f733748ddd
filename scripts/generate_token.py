#!/usr/bin/env python3
"""Script para generar tokens JWT de prueba"""
import sys
import os
import uuid

# Agregar directorio raíz al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shared.auth.jwt_handler import ROLES, create_access_token


def generate_token(user_id: str, email: str = None, role: str = "attendee", minutes: int = 60):
    """Generar token JWT con el claim userId que espera la API"""
    from datetime import timedelta

    data = {
        "sub": user_id,
        "userId": user_id,
        "email": email or f"{user_id}@example.com",
        "role": role,
    }
    return create_access_token(data, expires_delta=timedelta(minutes=minutes))


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Generar token JWT de prueba")
    parser.add_argument("--user-id", default=None, help="ID (UUID) del usuario; se genera uno si se omite")
    parser.add_argument("--email", help="Email del usuario")
    parser.add_argument("--role", default="attendee", choices=ROLES, help="Rol del usuario")
    parser.add_argument("--minutes", type=int, default=60, help="Minutos de validez")

    args = parser.parse_args()
    user_id = args.user_id or str(uuid.uuid4())

    token = generate_token(user_id, args.email, args.role, args.minutes)
    print(f"\nToken generado para {user_id} ({args.role}):")
    print(token)
    print(f"\nPara usar en curl:")
    print(f'curl -H "Authorization: Bearer {token}" http://localhost:8000/api/v1/attendee/reservations')
    print()
