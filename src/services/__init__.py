"""Business logic services used by handlers.

Services receive their repository explicitly; handlers decide when to
build them.
"""
