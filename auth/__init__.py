"""auth/ -- Authentication and authorization package for the food ordering service.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, catalog/, orders/ or payments/.
api/ imports from auth/, not the other way around.
"""
