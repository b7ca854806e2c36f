# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides sample table rows (stores, questions, templates, users)
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-tokens")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "test-maps-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest


STORE_ID = "11111111-1111-4111-8111-111111111111"
OTHER_STORE_ID = "22222222-2222-4222-8222-222222222222"
TEMPLATE_ID = "33333333-3333-4333-8333-333333333333"
ADMIN_ID = "44444444-4444-4444-8444-444444444444"
MEMBER_ID = "55555555-5555-4555-8555-555555555555"
SUPERVISOR_ID = "66666666-6666-4666-8666-666666666666"


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def sample_store_row():
    """Store row as stored in the stores table."""
    return {
        "id": STORE_ID,
        "name": "Pali Desamparados",
        "store_number": "PAL-102",
        "format": "Pali",
        "province": "San José",
        "canton": "Desamparados",
        "supervisors": [SUPERVISOR_ID],
        "location": {
            "latitude": 9.8999,
            "longitude": -84.0701,
            "address": "200 m sur de la iglesia",
            "place_id": None,
        },
        "created_at": "2024-03-01T12:00:00+00:00",
        "updated_at": "2024-03-01T12:00:00+00:00",
    }


@pytest.fixture
def other_store_row():
    return {
        "id": OTHER_STORE_ID,
        "name": "Maxi Pali Curridabat",
        "store_number": "MXP-7",
        "format": "Maxi Pali",
        "province": "San José",
        "canton": "Curridabat",
        "supervisors": [],
        "location": {"latitude": 9.9146, "longitude": -84.0346, "address": None, "place_id": None},
        "created_at": "2024-03-02T12:00:00+00:00",
        "updated_at": "2024-03-02T12:00:00+00:00",
    }


@pytest.fixture
def yes_no_question():
    """Required yes/no question expecting "yes"."""
    return {
        "id": "q1",
        "type": "yes_no",
        "title": "Is the shelf stocked?",
        "description": "",
        "required": True,
        "order": 0,
        "options": [],
        "config": {
            "weight": 2,
            "expected_value": True,
            "min": None,
            "max": None,
            "min_photos": None,
            "max_photos": None,
            "allow_partial": False,
        },
    }


@pytest.fixture
def number_question():
    """Required number question with a 10..20 range."""
    return {
        "id": "q2",
        "type": "number",
        "title": "Facings on shelf",
        "description": "",
        "required": True,
        "order": 1,
        "options": [],
        "config": {
            "weight": 1,
            "expected_value": None,
            "min": 10,
            "max": 20,
            "min_photos": None,
            "max_photos": None,
            "allow_partial": False,
        },
    }


@pytest.fixture
def sample_template_row(yes_no_question, number_question):
    """Published template scoped to every store."""
    return {
        "id": TEMPLATE_ID,
        "version": 3,
        "status": "published",
        "name": "Auditoría de góndola",
        "description": "",
        "scope_kind": "all",
        "scope": {"kind": "all"},
        "questions": [number_question, yes_no_question],
        "created_by": ADMIN_ID,
        "updated_by": ADMIN_ID,
        "created_at": "2024-03-01T12:00:00+00:00",
        "updated_at": "2024-03-05T12:00:00+00:00",
    }


@pytest.fixture
def admin_row():
    return {
        "id": ADMIN_ID,
        "cedula": "000000001",
        "name": "Administrador General",
        "email": "admin@kelloggsbd.local",
        "phone": None,
        "role": "admin",
        "active": True,
        "password_hash": "$2b$04$invalidhashinvalidhashinvalidhashinvalidhashinvali",
        "created_at": "2024-03-01T12:00:00+00:00",
        "updated_at": "2024-03-01T12:00:00+00:00",
    }
