"""
DocGate — Application Package Initializer
===========================================

What: Marks the `docgate` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │      Services (Collection logic)    │  ← parsing, validation, one driver call
    ├─────────────────────────────────────┤
    │        Schemas (API contracts)      │  ← Pydantic response models
    ├─────────────────────────────────────┤
    │     Database (DocumentStore/Motor)  │  ← connection lifecycle, collection handles
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
