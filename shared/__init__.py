"""
Shared Kernel

Base classes and application plumbing shared by the reservation apps:
DDD building blocks, the unit of work, the message bus and the admin
capability object.
"""
