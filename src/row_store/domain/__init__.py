"""Domain layer - tables, columns, errors and the services over them.

The domain has no I/O: persistence goes through ports implemented by
adapters.
"""
