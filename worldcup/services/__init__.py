"""
Services Layer

Bracket engine services that:
- Accept domain inputs (IDs, sessions, item lists)
- Return domain outputs (models, plans, views, ranking rows)
- Do NOT depend on HTTP request/response objects
- Raise BracketError subclasses; the routes translate them
"""
