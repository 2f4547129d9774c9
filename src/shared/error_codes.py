# src/shared/error_codes.py
# Central mapping that aligns with the HTTP error contract.
# Keep keys stable: gateway operators and dashboards rely on these.
ERROR_CODES = {
    # ─── Validation & Requests ──────────────────────────────────────────────
    "validation_error": {
        "http": 422,
        "message": "Validation failed for one or more fields."
    },
    "invalid_request": {
        "http": 400,
        "message": "Invalid request payload."
    },

    # ─── Resources ──────────────────────────────────────────────────────────
    "not_found": {
        "http": 404,
        "message": "Resource not found."
    },
    "conflict": {
        "http": 409,
        "message": "Resource was modified concurrently."
    },

    # ─── Upstreams ──────────────────────────────────────────────────────────
    "service_unavailable": {
        "http": 503,
        "message": "A backing service is unavailable."
    },
    "internal_error": {
        "http": 500,
        "message": "An unexpected error occurred."
    },
}
