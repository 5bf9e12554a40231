"""
Authentication package for StarBite.

Provides:
- Signing keys loaded from configuration
- JWT access/refresh token signing, verification and issuance
- Access and refresh guards
- FastAPI dependencies that attach the authenticated user id
"""
