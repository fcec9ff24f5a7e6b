"""
Core data package: shared record base for procurement models
"""
