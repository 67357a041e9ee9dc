# Services package init
"""
DocGate — Services Layer
==========================

What:  Logic between routes (HTTP) and the Motor collection handles.

Service Inventory:
    - CollectionService: list / sorted list / get / insert / delete / update,
      plus the order-specific insert and update rules.
"""
