"""
Prosthesis Orders Backend — Application Package
=================================================

Layered like this:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (rules + notifications)  │  ← validation, PIN gate, email
    ├─────────────────────────────────────┤
    │          Store (Firestore)          │  ← RecordStore interface
    └─────────────────────────────────────┘

The store and the mail client are opened once in the application lifespan
and injected into handlers; nothing else is shared between requests.
"""

__version__ = "1.0.0"
