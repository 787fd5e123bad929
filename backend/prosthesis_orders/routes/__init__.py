# Routes package init
"""
Prosthesis Orders Backend — API Routes Package
================================================

Route Inventory:
    - records.py: GET/POST /api/<collection>, PUT/DELETE /api/<collection>/{id},
                  POST /api/<collection>/bulk-update
    - health.py:  GET /health

Routes stay thin: they pull data out of the request, call RecordService and
shape the response. Business rules live in services/record_service.py.
"""
