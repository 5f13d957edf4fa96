"""
Pydantic schemas: API contracts (camelCase on the wire) and the record
types the storage backends hand back to services.
"""
