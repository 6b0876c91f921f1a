"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import forms, users

api_router = APIRouter()

# Inspection forms, workflow, PDF report
api_router.include_router(forms.router)

# User directory and login
api_router.include_router(users.router)
