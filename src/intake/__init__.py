# Begin: src/intake/__init__.py ***
"""Citizen-request intake over WhatsApp.

Layers:
- domain: session entity, dialogue states, option registry, validators, ports
- application: dialogue engine, session lifecycle policy, intake service
- infrastructure: SQLAlchemy stores, Evolution API gateway, locks, delivery ledger
- api: Evolution webhook ingress (FastAPI)
"""
# End: src/intake/__init__.py ***
