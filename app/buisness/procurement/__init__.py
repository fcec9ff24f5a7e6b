"""
Procurement business layer.

Organized into:
- dispatch_planner / dispatch_engine - routing open requests into supplier baskets
- state_machine / status_manager - basket lifecycle and cascade to requests
- supplier_order_context / supplier_order_line_context - basket and line operations
- basket_purge - removing lines from OPEN baskets and releasing their demand
- twin_lines / parallel_quote - competing quotes for the same demand
- policies/ - lock and amount rules; amounts - numeric input checks
- integrity - quantity audit
"""
